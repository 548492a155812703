# backend/models/users.py
import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, CheckConstraint, func
from database import Base


# Account roles recognised by the marketplace
class Role(str, enum.Enum):
    USER = "USER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


# Represents a buyer, seller or administrator account
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.USER)

    # Cumulative reputation, only changed by delivery and approved returns
    eco_score = Column(Integer, CheckConstraint("eco_score >= 0"), nullable=False, default=0)
    banned = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
