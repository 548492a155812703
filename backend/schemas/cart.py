from pydantic import BaseModel, Field
from typing import List

from schemas.reports import Amount

# Payload for adding a product to the cart
class CartAddItem(BaseModel):
    product_id: int
    quantity: int = Field(1, gt=0)

# Payload for updating cart item quantity
class CartUpdateItem(BaseModel):
    quantity: int = Field(..., gt=0)

# Single cart line, priced with the snapshot taken when it was added
class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    quantity: int
    price: Amount
    carbon_impact: Amount
    subtotal: Amount
    total_carbon: Amount

# Full cart with totals
class CartOut(BaseModel):
    items: List[CartItemOut]
    total_price: Amount
    total_carbon: Amount
    total_items: int
