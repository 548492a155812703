# backend/utils/store.py
"""Query helpers over the relational store used by the scoring, recommendation
and report code. Callers own the transaction; save_* only flush."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from models.order import Order, OrderItem
from models.product import Product
from models.users import User


def find_product_by_id(db: Session, product_id: int, for_update: bool = False) -> Optional[Product]:
    q = db.query(Product).filter(Product.id == product_id)
    if for_update:
        q = q.with_for_update()
    return q.first()


# Candidate set for every recommendation: visible and buyable, in catalog order
def find_approved_in_stock_products(db: Session) -> List[Product]:
    return (db.query(Product)
            .filter(Product.approved.is_(True), Product.stock > 0)
            .order_by(Product.id.asc())
            .all())


def save_product(db: Session, product: Product) -> Product:
    db.add(product)
    db.flush()
    return product


def find_order_by_id(db: Session, order_id: int, for_update: bool = False) -> Optional[Order]:
    q = db.query(Order).options(selectinload(Order.items)).filter(Order.id == order_id)
    if for_update:
        q = q.with_for_update()
    return q.first()


def find_orders_by_user_in_range(db: Session, user_id: int, start: datetime, end: datetime) -> List[Order]:
    return (db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.user_id == user_id,
                    Order.order_date >= start,
                    Order.order_date <= end)
            .order_by(Order.order_date.asc(), Order.id.asc())
            .all())


def find_orders_containing_seller_in_range(db: Session, seller_id: int,
                                           start: datetime, end: datetime) -> List[Order]:
    return (db.query(Order)
            .options(selectinload(Order.items), selectinload(Order.user))
            .filter(Order.items.any(OrderItem.seller_id == seller_id),
                    Order.order_date >= start,
                    Order.order_date <= end)
            .order_by(Order.order_date.asc(), Order.id.asc())
            .all())


def save_order(db: Session, order: Order) -> Order:
    db.add(order)
    db.flush()
    return order


def find_user_by_id(db: Session, user_id: int, for_update: bool = False) -> Optional[User]:
    q = db.query(User).filter(User.id == user_id)
    if for_update:
        q = q.with_for_update()
    return q.first()


def save_user(db: Session, user: User) -> User:
    db.add(user)
    db.flush()
    return user
