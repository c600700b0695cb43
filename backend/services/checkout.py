# backend/services/checkout.py
"""
Checkout: turn a shopper's cart into a persisted order, then empty the cart.

The order is committed before the cart is touched. If saving fails the cart
is left exactly as it was, so the shopper can retry. If emptying the cart
fails after the order was saved, the order stands and is returned; the
failure is only logged.
"""
import logging
import re
from decimal import Decimal
from typing import List, Optional

from services.cart_projector import CartProjector
from services.cart_store import CartStore
from services.errors import EmptyCart, InvalidArgument
from services.order_store import CustomerInfo, OrderSnapshot

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 100
ADDRESS_MAX_LENGTH = 500
PHONE_MAX_LENGTH = 20

# orders.total_amount is Numeric(12, 2)
MAX_ORDER_TOTAL = Decimal("9999999999.99")

# Digits, spaces, hyphens, dots, parentheses and an optional leading +
_PHONE_RE = re.compile(r"^\+?[\d\s\-().]+$")


def validate_customer(customer: CustomerInfo) -> CustomerInfo:
    """Return the customer with surrounding whitespace stripped.

    Raises InvalidArgument naming every offending field.
    """
    name = (customer.name or "").strip()
    address = (customer.address or "").strip()
    phone = (customer.phone or "").strip()

    problems: List[str] = []
    fields: List[str] = []

    if not name:
        fields.append("customerName")
        problems.append("Name is required.")
    elif len(name) > NAME_MAX_LENGTH:
        fields.append("customerName")
        problems.append(f"Name cannot exceed {NAME_MAX_LENGTH} characters.")

    if not address:
        fields.append("address")
        problems.append("Address is required.")
    elif len(address) > ADDRESS_MAX_LENGTH:
        fields.append("address")
        problems.append(f"Address cannot exceed {ADDRESS_MAX_LENGTH} characters.")

    if not phone:
        fields.append("phone")
        problems.append("Phone is required.")
    elif len(phone) > PHONE_MAX_LENGTH:
        fields.append("phone")
        problems.append(f"Phone cannot exceed {PHONE_MAX_LENGTH} characters.")
    elif not _PHONE_RE.match(phone) or not re.search(r"\d", phone):
        fields.append("phone")
        problems.append("Invalid phone number format.")

    if fields:
        raise InvalidArgument(" ".join(problems), fields=fields)
    return CustomerInfo(name=name, address=address, phone=phone)


class CheckoutWorkflow:
    def __init__(self, store: CartStore, catalog, orders):
        self.store = store
        self.projector = CartProjector(store, catalog)
        self.orders = orders

    def checkout(
        self,
        session_key: str,
        customer: CustomerInfo,
        idempotency_key: Optional[str] = None,
    ) -> OrderSnapshot:
        with self.store.checkout_guard(session_key):
            if idempotency_key:
                existing = self.orders.find_by_idempotency_key(session_key, idempotency_key)
                if existing is not None:
                    logger.info("Checkout %s replayed, returning order %s", idempotency_key, existing.id)
                    return existing

            # 1. Price the cart as it is right now
            quantities = self.store.read_quantities(session_key)
            view = self.projector.price(session_key, quantities)
            if view.is_empty():
                raise EmptyCart("Cart is empty.")
            if view.grand_total > MAX_ORDER_TOTAL:
                raise InvalidArgument(f"Order total cannot exceed {MAX_ORDER_TOTAL}.", fields=["quantity"])

            # 2. Shipping details
            customer = validate_customer(customer)

            # 3. Persist; raises DependencyFailure and leaves the cart alone on error
            order = self.orders.insert(
                session_key=session_key,
                customer=customer,
                view=view,
                idempotency_key=idempotency_key,
            )

            # 4. Take what was read in step 1 out of the cart, dropped lines included
            try:
                self.store.clear(session_key, checked_out=quantities)
            except Exception:
                logger.exception("Order %s saved but cart %s could not be cleared", order.id, session_key)

            logger.info(
                "Order %s placed from cart %s: %d items, total %s",
                order.id, session_key, view.total_items, view.grand_total,
            )
            return order
