from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from models.order import OrderStatus, ReturnStatus
from models.product import EcoRating
from schemas.reports import Amount


# Output schema for an individual order line snapshot
class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: Optional[int] = None
    seller_id: int
    product_name: str
    category: str
    eco_rating: EcoRating
    eco_certified: bool
    quantity: int
    price: Amount
    carbon_impact: Amount
    subtotal: Amount
    total_carbon: Amount


# Output schema representing the full order details
class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    status: OrderStatus
    total_price: Amount
    total_carbon: Amount
    total_items: int
    order_date: datetime
    delivered_date: Optional[datetime] = None
    return_requested: bool
    return_status: Optional[ReturnStatus] = None
    return_reason: Optional[str] = None
    return_request_date: Optional[datetime] = None
    return_resolved_date: Optional[datetime] = None
    items: List[OrderItemOut]


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: OrderStatus


class ReturnRequestPayload(BaseModel):
    reason: Optional[str] = None


class CarbonImpactSummary(BaseModel):
    user_id: int
    total_carbon: Amount
    order_count: int
    eco_score: int
