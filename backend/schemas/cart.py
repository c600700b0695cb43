from typing import List, Optional
from schemas.product import ORMBase

# Request schema for adding an item to the cart
# Quantity bounds are enforced by the cart service so the error names the field
class CartAddItem(ORMBase):
    product_id: int
    quantity: int

# Request schema for updating cart item quantity
class CartUpdateItem(ORMBase):
    quantity: int

# Response schema for a single priced cart line
class CartItemOut(ORMBase):
    product_id: int
    product_name: str
    price: float
    quantity: int
    total_price: float
    image_url: Optional[str] = None

# Response schema for the entire cart summary
class CartOut(ORMBase):
    items: List[CartItemOut]
    grand_total: float
    total_items: int
