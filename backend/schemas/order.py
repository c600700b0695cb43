from pydantic import Field
from typing import List, Optional
from datetime import datetime

from schemas.product import ORMBase


# Output schema for an individual order line item
class OrderItemOut(ORMBase):
    product_id: int
    product_name: str
    price: float
    quantity: int
    total_price: float


# Checkout request; customer fields are validated by the checkout workflow
class OrderCreatePayload(ORMBase):
    customer_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    session_id: str = Field(min_length=1)


# Output schema representing the full order details
class OrderResponse(ORMBase):
    id: int
    customer_name: str
    address: str
    phone: str
    order_date: Optional[datetime] = None
    total_amount: float
    order_items: List[OrderItemOut]
