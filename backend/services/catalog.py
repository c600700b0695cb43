# backend/services/catalog.py
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.product import Product
from services.errors import DependencyFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductInfo:
    id: int
    name: str
    price: Decimal
    image_url: Optional[str] = None


class SqlCatalog:
    """Read-only product lookups against the products table."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> Optional[ProductInfo]:
        try:
            product = self.db.get(Product, product_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Catalog lookup for product %s failed: %s", product_id, e)
            raise DependencyFailure("Product catalog is unavailable") from e
        if product is None:
            return None
        return ProductInfo(
            id=product.id,
            name=product.name,
            price=Decimal(str(product.price)),
            image_url=product.image_url,
        )
