# backend/routes/orders.py
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.order import Order, OrderItem, OrderStatus, ReturnStatus
from models.users import Role, User
from schemas.order import (
    CarbonImpactSummary, OrderResponse, OrdersPage, OrderStatusPatch, ReturnRequestPayload,
)
from utils import order_lifecycle
from utils.tokenJWT import get_current_user, role_required

router = APIRouter(prefix="/orders", tags=["Orders"])


def _page(query, page: int, page_size: int) -> dict:
    total = query.count()
    rows = (query.order_by(Order.order_date.desc(), Order.id.desc())
            .offset((page - 1) * page_size).limit(page_size).all())
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


def _orders_query(db: Session):
    return db.query(Order).options(selectinload(Order.items))


# Place an order from the current open cart
@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return order_lifecycle.create_order_from_cart(db, current_user)


# List the buyer's own orders
@router.get("", response_model=OrdersPage)
def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = _orders_query(db).filter(Order.user_id == current_user.id)
    return _page(q, page, page_size)


# Lifetime carbon footprint of the buyer's orders, cancellations and approved returns excluded
@router.get("/my-carbon-impact", response_model=CarbonImpactSummary)
def my_carbon_impact(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    total, count = (db.query(func.coalesce(func.sum(Order.total_carbon), 0), func.count(Order.id))
                    .filter(Order.user_id == current_user.id,
                            Order.status != OrderStatus.CANCELLED,
                            or_(Order.return_status.is_(None),
                                Order.return_status != ReturnStatus.APPROVED))
                    .one())
    return CarbonImpactSummary(
        user_id=current_user.id,
        total_carbon=Decimal(str(total)),
        order_count=count,
        eco_score=current_user.eco_score,
    )


# =========================
# SELLER
# =========================
@router.get("/seller", response_model=OrdersPage)
def list_seller_orders(
    status: Optional[OrderStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.SELLER)),
):
    """Orders holding at least one of the seller's products."""
    q = _orders_query(db).filter(Order.items.any(OrderItem.seller_id == current_user.id))
    if status:
        q = q.filter(Order.status == status)
    return _page(q, page, page_size)


@router.put("/seller/{order_id}/status", response_model=OrderResponse)
def seller_update_status(
    order_id: int,
    payload: OrderStatusPatch,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.SELLER)),
):
    return order_lifecycle.update_order_status(db, order_id, payload.status, current_user)


@router.put("/seller/{order_id}/return/approve", response_model=OrderResponse)
def seller_approve_return(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.SELLER)),
):
    return order_lifecycle.approve_return(db, order_id, current_user)


@router.put("/seller/{order_id}/return/reject", response_model=OrderResponse)
def seller_reject_return(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.SELLER)),
):
    return order_lifecycle.reject_return(db, order_id, current_user)


# =========================
# ADMIN
# =========================
@router.get("/admin/all", response_model=OrdersPage)
def list_all_orders(
    status: Optional[OrderStatus] = Query(None),
    user_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.ADMIN)),
):
    q = _orders_query(db)
    if status:
        q = q.filter(Order.status == status)
    if user_id is not None:
        q = q.filter(Order.user_id == user_id)
    return _page(q, page, page_size)


@router.put("/admin/{order_id}/status", response_model=OrderResponse)
def admin_update_status(
    order_id: int,
    payload: OrderStatusPatch,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.ADMIN)),
):
    return order_lifecycle.update_order_status(db, order_id, payload.status, current_user)


# =========================
# SINGLE ORDER (buyer)
# =========================
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    o = _orders_query(db).filter(Order.id == order_id).first()
    if not o or not order_lifecycle.can_view_order(o, current_user):
        raise HTTPException(status_code=404, detail="Order not found or forbidden")
    return o


@router.put("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return order_lifecycle.cancel_order(db, order_id, current_user)


@router.post("/{order_id}/return", response_model=OrderResponse)
def request_return(
    order_id: int,
    payload: ReturnRequestPayload,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return order_lifecycle.request_return(db, order_id, current_user, payload.reason)
