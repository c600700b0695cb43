# backend/services/cart_projector.py
"""
Priced views of a cart.

Carts only store product ids and quantities. Names and prices come from the
catalog on every read, so a price change shows up on the next view and a
product removed from the catalog simply disappears from the cart view.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Mapping, Optional

from services.cart_store import CartStore, check_quantity
from services.catalog import ProductInfo
from services.errors import NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    name: str
    price: Decimal
    quantity: int
    image_url: Optional[str] = None

    @property
    def total_price(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def of(cls, product: ProductInfo, quantity: int) -> "PricedLine":
        return cls(
            product_id=product.id,
            name=product.name,
            price=product.price,
            quantity=quantity,
            image_url=product.image_url,
        )


@dataclass(frozen=True)
class PricedCartView:
    items: List[PricedLine] = field(default_factory=list)

    @property
    def grand_total(self) -> Decimal:
        return sum((line.total_price for line in self.items), Decimal("0"))

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.items)

    def is_empty(self) -> bool:
        return not self.items


class CartProjector:
    def __init__(self, store: CartStore, catalog):
        self.store = store
        self.catalog = catalog

    def project(self, session_key: str) -> PricedCartView:
        return self.price(session_key, self.store.read_quantities(session_key))

    def price(self, session_key: str, quantities: Mapping[int, int]) -> PricedCartView:
        lines = []
        for product_id, quantity in quantities.items():
            product = self.catalog.get(product_id)
            if product is None:
                logger.info("Cart %s: product %s left the catalog, skipping line", session_key, product_id)
                continue
            lines.append(PricedLine.of(product, quantity))
        return PricedCartView(items=lines)


class CartService:
    """Cart operations as the HTTP layer uses them: store mutations plus catalog data."""

    def __init__(self, store: CartStore, catalog):
        self.store = store
        self.catalog = catalog
        self.projector = CartProjector(store, catalog)

    def _product(self, product_id: int) -> ProductInfo:
        product = self.catalog.get(product_id)
        if product is None:
            raise NotFound(f"Product with ID {product_id} not found.")
        return product

    def view(self, session_key: str) -> PricedCartView:
        return self.projector.project(session_key)

    def add(self, session_key: str, product_id: int, quantity: int) -> PricedLine:
        # Quantity is checked before the catalog lookup
        check_quantity(quantity)
        product = self._product(product_id)
        new_qty = self.store.add_item(session_key, product_id, quantity)
        return PricedLine.of(product, new_qty)

    def update(self, session_key: str, product_id: int, quantity: int) -> PricedLine:
        check_quantity(quantity)
        product = self._product(product_id)
        new_qty = self.store.set_quantity(session_key, product_id, quantity)
        return PricedLine.of(product, new_qty)

    def remove(self, session_key: str, product_id: int) -> bool:
        return self.store.remove_item(session_key, product_id)

    def clear(self, session_key: str) -> None:
        self.store.clear(session_key)
