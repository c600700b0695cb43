# backend/services/errors.py
from typing import List, Optional


class StoreError(Exception):
    """Base class for the errors raised by the cart and checkout services."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(StoreError):
    """Unknown product, or no such line in the shopper's cart."""


class InvalidArgument(StoreError):
    """Bad quantity or malformed customer details."""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])


class EmptyCart(StoreError):
    """Checkout attempted with no priced line items."""


class DependencyFailure(StoreError):
    """The catalog or the order store could not be reached."""
