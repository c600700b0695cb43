# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional


# Base configuration: ORM compatibility and camelCase field names on the wire
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1, max_length=100)
    price: float = Field(gt=0)
    description: Optional[str] = Field(default=None, max_length=1000)
    image_url: Optional[str] = Field(default=None, max_length=500)


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Schema for replacing a product's attributes (PUT)
class ProductUpdate(ProductBase):
    pass


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
