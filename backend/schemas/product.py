# backend/schemas/product.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict

from models.product import EcoRating
from schemas.reports import Amount


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Seller supplied attributes; rating and certification are always derived
class ProductBase(ORMBase):
    name: str = Field(..., min_length=1)
    description: Optional[str] = Field(None, max_length=2000)
    category: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    carbon_impact: Decimal = Field(..., ge=0, description="kg CO2e per unit")
    image_url: Optional[str] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(ProductBase):
    pass


class ProductResponse(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    price: Amount
    stock: int
    carbon_impact: Amount
    eco_rating: EcoRating
    eco_certified: bool
    approved: bool
    seller_id: int
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductResponse]
    total: int
    page: int
    page_size: int


class EcoCertificationPatch(BaseModel):
    certified: bool


# --- Recommendations ---
class CarbonSavingsResponse(BaseModel):
    current_product_id: int
    alternative_product_id: int
    quantity: int
    current_carbon: Amount
    alternative_carbon: Amount
    carbon_savings: Amount
    savings_percentage: float


class CartRecommendation(BaseModel):
    current_product: ProductResponse
    alternatives: List[ProductResponse]
    potential_savings: Amount


class CarbonComparison(BaseModel):
    product_id: int
    category: str
    carbon_impact: Amount
    category_average: Optional[Amount] = None
    carbon_savings: Amount
    percentage_reduction: float
    eco_rating: EcoRating
    eco_rating_display_name: str
    eco_rating_description: str
    eco_certified: bool
    eco_score_points: int
