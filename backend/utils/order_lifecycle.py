# backend/utils/order_lifecycle.py
"""Order placement, status changes, cancellation and returns.

Each public function is one transaction: lock the affected rows, validate,
apply stock and eco score deltas, commit. Any failure rolls everything back.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from config import settings
from models.cart import Cart
from models.order import Order, OrderItem, OrderStatus, ReturnStatus
from models.users import Role, User
from utils.audit import write_log
from utils.carbon import classify, qualifies_for_eco_certification
from utils.eco_score import award_order_score, revoke_order_score
from utils.errors import InvalidStateError, NotFoundError, UnauthorizedError
from utils.store import find_order_by_id, find_product_by_id, find_user_by_id, save_order

logger = logging.getLogger(__name__)

# Forward path of the main flow; CANCELLED can be entered from any non-terminal state
FORWARD_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]
TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


@contextmanager
def _atomic(db: Session):
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


def _load_order(db: Session, order_id: int) -> Order:
    order = find_order_by_id(db, order_id, for_update=True)
    if order is None:
        raise NotFoundError("Order", order_id)
    return order


def seller_has_line(order: Order, seller_id: int) -> bool:
    return any(item.seller_id == seller_id for item in order.items)


def _require_seller_line(order: Order, seller: User) -> None:
    if not seller_has_line(order, seller.id):
        raise UnauthorizedError("Order does not contain your products")


def _restore_stock(db: Session, order: Order) -> None:
    for item in order.items:
        if item.product_id is None:
            continue
        product = find_product_by_id(db, item.product_id, for_update=True)
        if product is not None:
            product.stock += item.quantity


def can_view_order(order: Order, user: User) -> bool:
    if user.role == Role.ADMIN or order.user_id == user.id:
        return True
    return user.role == Role.SELLER and seller_has_line(order, user.id)


def create_order_from_cart(db: Session, user: User, now: Optional[datetime] = None) -> Order:
    now = now or datetime.now()
    with _atomic(db):
        cart = (db.query(Cart)
                .filter(Cart.user_id == user.id, Cart.status == "open")
                .with_for_update()
                .populate_existing()
                .first())
        if cart is None or not cart.items:
            raise InvalidStateError("Cannot create order from empty cart")

        # Validate every line before touching stock
        products = {}
        for line in cart.items:
            product = find_product_by_id(db, line.product_id, for_update=True)
            if product is None:
                raise NotFoundError("Product", line.product_id)
            if not product.approved:
                raise InvalidStateError(f"Product is not available for sale: {product.name}")
            if product.stock < line.quantity:
                raise InvalidStateError(f"Insufficient stock for product: {product.name}")
            products[line.product_id] = product

        # Claim the cart; a checkout that committed after our read leaves nothing to claim
        claimed = db.execute(
            update(Cart)
            .where(Cart.id == cart.id, Cart.status == "open")
            .values(status="ordered")
            .execution_options(synchronize_session=False)
        ).rowcount
        if claimed != 1:
            raise InvalidStateError("Cart has already been checked out")

        order = Order(
            user_id=user.id,
            status=OrderStatus.PENDING,
            order_date=now,
            total_price=cart.total_price,
            total_carbon=cart.total_carbon,
            total_items=cart.total_items,
        )
        for line in cart.items:
            product = products[line.product_id]
            carbon = Decimal(line.carbon_impact)
            # Rating and certification describe the same carbon figure
            if product.carbon_impact is not None and Decimal(product.carbon_impact) == carbon:
                certified = bool(product.eco_certified)
            else:
                certified = qualifies_for_eco_certification(carbon)
            order.items.append(OrderItem(
                product_id=product.id,
                seller_id=product.seller_id,
                product_name=product.name,
                category=product.category,
                eco_rating=classify(carbon),
                eco_certified=certified,
                quantity=line.quantity,
                price=Decimal(line.price),
                carbon_impact=carbon,
                subtotal=line.subtotal,
                total_carbon=line.total_carbon,
            ))
            product.stock -= line.quantity

        cart.status = "ordered"
        save_order(db, order)
        write_log(db, user_id=user.id, action="ORDER_CREATE", resource="orders", commit=False,
                  meta={"order_id": order.id, "items": order.total_items})

    logger.info("Order %s placed by user %s", order.id, user.id)
    return order


def update_order_status(db: Session, order_id: int, new_status: OrderStatus, actor: User,
                        now: Optional[datetime] = None) -> Order:
    now = now or datetime.now()
    with _atomic(db):
        order = _load_order(db, order_id)
        if actor.role != Role.ADMIN:
            if actor.role != Role.SELLER:
                raise UnauthorizedError("Only sellers and admins can change order status")
            _require_seller_line(order, actor)

        old_status = order.status
        if old_status in TERMINAL_STATUSES:
            raise InvalidStateError(f"Cannot change status of a {old_status.value} order")
        if new_status == old_status:
            raise InvalidStateError(f"Order is already {old_status.value}")

        if new_status == OrderStatus.CANCELLED:
            _restore_stock(db, order)
        elif FORWARD_FLOW.index(new_status) < FORWARD_FLOW.index(old_status):
            raise InvalidStateError(
                f"Cannot move order from {old_status.value} back to {new_status.value}")

        order.status = new_status
        meta = {"order_id": order.id, "old": old_status.value, "new": new_status.value}

        # The only transition that awards eco score
        if new_status == OrderStatus.DELIVERED:
            order.delivered_date = now
            buyer = find_user_by_id(db, order.user_id, for_update=True)
            points = award_order_score(buyer, order)
            meta["eco_points"] = points
            write_log(db, user_id=buyer.id, action="ECO_SCORE_AWARD", resource="users",
                      commit=False, meta={"order_id": order.id, "points": points})

        write_log(db, user_id=actor.id, action="ORDER_STATUS_CHANGE", resource="orders",
                  commit=False, meta=meta)
    return order


def cancel_order(db: Session, order_id: int, buyer: User) -> Order:
    with _atomic(db):
        order = _load_order(db, order_id)
        if order.user_id != buyer.id:
            raise UnauthorizedError("Order does not belong to user")
        if order.status == OrderStatus.DELIVERED:
            raise InvalidStateError("Cannot cancel delivered order")
        if order.status == OrderStatus.CANCELLED:
            raise InvalidStateError("Order is already cancelled")

        _restore_stock(db, order)
        order.status = OrderStatus.CANCELLED
        write_log(db, user_id=buyer.id, action="ORDER_CANCEL", resource="orders",
                  commit=False, meta={"order_id": order.id})
    return order


def request_return(db: Session, order_id: int, buyer: User, reason: Optional[str],
                   now: Optional[datetime] = None) -> Order:
    now = now or datetime.now()
    with _atomic(db):
        order = _load_order(db, order_id)
        if order.user_id != buyer.id:
            raise UnauthorizedError("Order does not belong to user")
        if order.status != OrderStatus.DELIVERED:
            raise InvalidStateError("Only delivered orders can be returned")
        if order.return_requested:
            raise InvalidStateError("Return already requested for this order")

        window = timedelta(days=settings.RETURN_WINDOW_DAYS)
        if order.delivered_date is None or now - order.delivered_date > window:
            raise InvalidStateError(
                f"Return window has expired. Returns are only allowed within "
                f"{settings.RETURN_WINDOW_DAYS} days of delivery")

        order.return_requested = True
        order.return_status = ReturnStatus.PENDING
        order.return_reason = reason
        order.return_request_date = now
        write_log(db, user_id=buyer.id, action="RETURN_REQUEST", resource="orders",
                  commit=False, meta={"order_id": order.id})
    return order


def _load_pending_return(db: Session, order_id: int, seller: User) -> Order:
    order = _load_order(db, order_id)
    _require_seller_line(order, seller)
    if not order.return_requested or order.return_status is None:
        raise InvalidStateError("No return request for this order")
    if order.return_status != ReturnStatus.PENDING:
        raise InvalidStateError("Return request already processed")
    return order


def approve_return(db: Session, order_id: int, seller: User, now: Optional[datetime] = None) -> Order:
    now = now or datetime.now()
    with _atomic(db):
        order = _load_pending_return(db, order_id, seller)
        order.return_status = ReturnStatus.APPROVED
        order.return_resolved_date = now
        _restore_stock(db, order)

        meta = {"order_id": order.id}
        # Points exist only if the delivery award happened
        if order.status == OrderStatus.DELIVERED:
            buyer = find_user_by_id(db, order.user_id, for_update=True)
            revoked = revoke_order_score(buyer, order)
            meta["eco_points_revoked"] = revoked
            write_log(db, user_id=buyer.id, action="ECO_SCORE_REVOKE", resource="users",
                      commit=False, meta={"order_id": order.id, "points": revoked})

        write_log(db, user_id=seller.id, action="RETURN_APPROVE", resource="orders",
                  commit=False, meta=meta)
    return order


def reject_return(db: Session, order_id: int, seller: User, now: Optional[datetime] = None) -> Order:
    now = now or datetime.now()
    with _atomic(db):
        order = _load_pending_return(db, order_id, seller)
        order.return_status = ReturnStatus.REJECTED
        order.return_resolved_date = now
        write_log(db, user_id=seller.id, action="RETURN_REJECT", resource="orders",
                  commit=False, meta={"order_id": order.id})
    return order
