# backend/models/order.py
import enum
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, Numeric, ForeignKey, DateTime, Enum
)
from sqlalchemy.orm import relationship
from database import Base
from models.product import EcoRating


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class ReturnStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Computed once from the items at creation
    total_price = Column(Numeric(10, 2), nullable=False)
    total_carbon = Column(Numeric(10, 2), nullable=False)
    total_items = Column(Integer, nullable=False)

    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    order_date = Column(DateTime, nullable=False, default=datetime.now, index=True)
    delivered_date = Column(DateTime, nullable=True)

    # Return sub-flow
    return_requested = Column(Boolean, nullable=False, default=False)
    return_status = Column(Enum(ReturnStatus), nullable=True)
    return_reason = Column(String, nullable=True)
    return_request_date = Column(DateTime, nullable=True)
    return_resolved_date = Column(DateTime, nullable=True)

    user = relationship("User")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan",
                         order_by="OrderItem.id")


# Snapshot of a purchased line. Never updated after the order is placed.
class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    product_name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    eco_rating = Column(Enum(EcoRating), nullable=False)
    eco_certified = Column(Boolean, nullable=False, default=False)

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    carbon_impact = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    total_carbon = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
    seller = relationship("User")
