# backend/models/product.py
import enum
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, Numeric, DateTime, Enum, ForeignKey, CheckConstraint
)
from sqlalchemy.orm import relationship
from database import Base


# Carbon tiers derived from a product's carbon impact
class EcoRating(str, enum.Enum):
    ECO_FRIENDLY = "ECO_FRIENDLY"
    MODERATE = "MODERATE"
    HIGH_IMPACT = "HIGH_IMPACT"
    UNRATED = "UNRATED"


# Product
# A seller's catalog entry. eco_rating and eco_certified are derived from
# carbon_impact on every write; admins may only override the certification.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String(2000))
    category = Column(String, nullable=False, index=True)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)

    # kg CO2e per unit
    carbon_impact = Column(Numeric(10, 2), CheckConstraint("carbon_impact >= 0"), nullable=False)
    eco_rating = Column(Enum(EcoRating), nullable=False, default=EcoRating.UNRATED)
    eco_certified = Column(Boolean, nullable=False, default=False)

    # Hidden from buyers until an admin approves it
    approved = Column(Boolean, nullable=False, default=False)

    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    image_url = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    seller = relationship("User")
