# backend/models/cart.py
from decimal import Decimal
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Represents the user's shopping cart
class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    status = Column(String, default="open", index=True)  # open | ordered
    created_at = Column(DateTime, server_default=func.now())

    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan",
                         order_by="CartItem.id")

    @property
    def total_price(self) -> Decimal:
        return sum((it.subtotal for it in self.items), Decimal("0"))

    @property
    def total_carbon(self) -> Decimal:
        return sum((it.total_carbon for it in self.items), Decimal("0"))

    @property
    def total_items(self) -> int:
        return sum(it.quantity for it in self.items)


# A product line in the cart; price and carbon are captured when the line is added
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False)
    carbon_impact = Column(Numeric(10, 2), nullable=False)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cartitem_cart_product"),
    )

    @property
    def subtotal(self) -> Decimal:
        return Decimal(self.price) * self.quantity

    @property
    def total_carbon(self) -> Decimal:
        return Decimal(self.carbon_impact) * self.quantity
