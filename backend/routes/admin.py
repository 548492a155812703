# backend/routes/admin.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.cart import Cart
from models.order import Order, OrderItem
from models.product import Product
from models.users import Role, User
from schemas.product import EcoCertificationPatch, ProductResponse
from schemas.user import PaginatedUsersResponse, UserResponse, UserStatistics
from utils.audit import client_ip, write_log
from utils.tokenJWT import role_required

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = role_required(Role.ADMIN)


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


# =========================
# USERS
# =========================
# Retrieve a list of users with filtering, sorting, and pagination
@router.get("/users", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by e-mail or name"),
    role: Optional[Role] = Query(None),
    banned: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "name", "role", "eco_score", "created_at"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    query = db.query(User)

    if q:
        like = f"%{q.lower()}%"
        query = query.filter(func.lower(User.email).like(like) | User.name.ilike(like))
    if role:
        query = query.filter(User.role == role)
    if banned is not None:
        query = query.filter(User.banned.is_(banned))

    sort_map = {
        "id": User.id,
        "email": User.email,
        "name": User.name,
        "role": User.role,
        "eco_score": User.eco_score,
        "created_at": User.created_at,
    }
    col = sort_map.get(sort_by, User.id)
    query = query.order_by(col.asc() if order == "asc" else col.desc(), User.id.asc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": users, "total": total, "page": page, "page_size": page_size}


@router.get("/users/statistics", response_model=UserStatistics)
def get_user_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    banned_count = db.query(func.count(User.id)).filter(User.banned.is_(True)).scalar() or 0
    total = sum(by_role.values())
    return UserStatistics(
        total_users=by_role.get(Role.USER, 0),
        total_sellers=by_role.get(Role.SELLER, 0),
        total_admins=by_role.get(Role.ADMIN, 0),
        banned_count=banned_count,
        active_count=total - banned_count,
        total_count=total,
    )


def _set_banned(db: Session, user_id: int, banned: bool, actor: User, request: Request) -> User:
    user = _get_user_or_404(db, user_id)
    if banned and user.role == Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot ban an admin")

    user.banned = banned
    db.commit()
    db.refresh(user)

    write_log(db, user_id=actor.id, action="USER_BAN" if banned else "USER_UNBAN", resource="users",
              ip=client_ip(request), meta={"target_user_id": user.id})
    return user


@router.put("/users/{user_id}/ban", response_model=UserResponse)
def ban_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return _set_banned(db, user_id, True, current_user, request)


@router.put("/users/{user_id}/unban", response_model=UserResponse)
def unban_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return _set_banned(db, user_id, False, current_user, request)


# Delete a user account; accounts with trading history can only be banned
@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = _get_user_or_404(db, user_id)

    # Prevent self-deletion
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    if user.role == Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete an admin")

    has_history = (
        db.query(Order.id).filter(Order.user_id == user.id).first() is not None
        or db.query(OrderItem.id).filter(OrderItem.seller_id == user.id).first() is not None
        or db.query(Product.id).filter(Product.seller_id == user.id).first() is not None
    )
    if has_history:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail="User has orders or products; ban the account instead")

    for cart in db.query(Cart).filter(Cart.user_id == user.id).all():
        db.delete(cart)
    email = user.email
    db.delete(user)
    db.commit()

    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users",
              ip=client_ip(request), meta={"target_user_id": user_id, "email": email})
    return {"message": f"User {email} has been deleted"}


# =========================
# PRODUCT MODERATION
# =========================
@router.get("/products/pending", response_model=List[ProductResponse])
def get_pending_products(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return (db.query(Product)
            .filter(Product.approved.is_(False))
            .order_by(Product.created_at.asc(), Product.id.asc())
            .all())


def _set_approved(db: Session, product_id: int, approved: bool, actor: User, request: Request) -> Product:
    product = _get_product_or_404(db, product_id)
    product.approved = approved
    db.commit()
    db.refresh(product)

    write_log(db, user_id=actor.id, action="PRODUCT_APPROVE" if approved else "PRODUCT_UNAPPROVE",
              resource="products", ip=client_ip(request), meta={"id": product.id})
    return product


@router.put("/products/{product_id}/approve", response_model=ProductResponse)
def approve_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return _set_approved(db, product_id, True, current_user, request)


@router.put("/products/{product_id}/unapprove", response_model=ProductResponse)
def unapprove_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return _set_approved(db, product_id, False, current_user, request)


# Manual override; the next seller edit recomputes it from carbon_impact
@router.put("/products/{product_id}/eco-certification", response_model=ProductResponse)
def set_eco_certification(
    product_id: int,
    payload: EcoCertificationPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    product = _get_product_or_404(db, product_id)
    product.eco_certified = payload.certified
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_ECO_CERTIFY", resource="products",
              ip=client_ip(request), meta={"id": product.id, "certified": payload.certified})
    return product
