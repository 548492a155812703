# schemas/reports.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, Field, PlainSerializer

# Exact arithmetic inside, plain JSON numbers on the wire
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# --- Shared ---
class CarbonImpactDetails(BaseModel):
    total_carbon_emitted: Amount = Decimal("0")
    estimated_carbon_saved: Amount = Decimal("0")
    average_carbon_per_item: Amount = Decimal("0")
    eco_friendly_item_count: int = 0
    moderate_impact_item_count: int = 0
    high_impact_item_count: int = 0


# --- User purchase report ---
class PurchasedItem(BaseModel):
    order_id: int
    product_name: str
    category: str
    eco_rating: str
    quantity_bought: int
    price_per_unit: Amount
    total_cost: Amount
    carbon_impact_per_unit: Amount
    total_carbon_emitted: Amount
    order_date: datetime
    seller_name: Optional[str] = None


class UserCategoryStats(BaseModel):
    category: str
    item_count: int
    total_spent: Amount
    total_carbon_emitted: Amount
    order_count: int


class UserPurchaseReport(BaseModel):
    user_id: int
    user_name: str
    month: str
    total_orders: int = 0
    total_items_bought: int = 0
    total_spent: Amount = Decimal("0")
    total_carbon_emitted: Amount = Decimal("0")
    items_bought: List[PurchasedItem] = []
    category_breakdown: List[UserCategoryStats] = []
    price_by_category: Dict[str, Amount] = {}
    carbon_impact_details: CarbonImpactDetails = Field(default_factory=CarbonImpactDetails)


# --- Seller sales report ---
class SoldItem(BaseModel):
    order_id: int
    product_name: str
    category: str
    eco_rating: str
    quantity_sold: int
    price_per_unit: Amount
    total_revenue: Amount
    carbon_impact_per_unit: Amount
    total_carbon_impact: Amount
    order_date: datetime
    buyer_name: Optional[str] = None


class SellerCategoryStats(BaseModel):
    category: str
    item_count: int
    total_revenue: Amount
    total_carbon_emitted: Amount
    order_count: int


class DailySales(BaseModel):
    date: str
    items_sold: int
    revenue: Amount
    order_count: int


class SellerSalesReport(BaseModel):
    seller_id: int
    seller_name: str
    month: str
    total_orders: int = 0
    total_items_sold: int = 0
    total_revenue: Amount = Decimal("0")
    total_carbon_impact: Amount = Decimal("0")
    items_sold: List[SoldItem] = []
    category_breakdown: List[SellerCategoryStats] = []
    revenue_by_category: Dict[str, Amount] = {}
    daily_sales: Dict[str, DailySales] = {}
    carbon_impact_details: CarbonImpactDetails = Field(default_factory=CarbonImpactDetails)
