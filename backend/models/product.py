# backend/models/product.py
from sqlalchemy import Column, Integer, String, Numeric, CheckConstraint
from database import Base

# Model Product
# A single catalog entry offered in the storefront.
# Carts only keep the product id; name and price are read from here
# every time a cart is displayed.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)

    # Unit price, strictly positive
    price = Column(Numeric(10, 2), CheckConstraint("price > 0"), nullable=False)

    description = Column(String(1000), nullable=True)

    # Optional product image URL
    image_url = Column(String(500), nullable=True)
