# backend/services/cart_store.py
"""
In-memory cart storage shared by every request of the process.

Each session key owns an entry with its own lock, so requests for one shopper
are applied one after another while different shoppers never wait on each
other. The registry lock only guards the key -> entry map and is never held
while an entry lock is being acquired. No lock is held across catalog or
database calls; those happen in the service layer before the store is touched.
"""
import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Mapping, Optional

from services.errors import InvalidArgument, NotFound

logger = logging.getLogger(__name__)


class _CartEntry:
    __slots__ = ("lock", "items", "touched_at", "closed")

    def __init__(self, now: float):
        self.lock = threading.Lock()
        # product_id -> quantity, in the order products were first added
        self.items: Dict[int, int] = {}
        self.touched_at = now
        # Set once the entry left the registry; holders of a stale reference retry
        self.closed = False


class _CheckoutGate:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


# Quantities must fit the 32-bit order_items.quantity column
MAX_QUANTITY = 2 ** 31 - 1


def check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidArgument("Quantity must be at least 1", fields=["quantity"])
    if quantity > MAX_QUANTITY:
        raise InvalidArgument(f"Quantity cannot exceed {MAX_QUANTITY}", fields=["quantity"])


class CartStore:
    """Session-keyed product -> quantity mapping with per-session locking."""

    def __init__(self, ttl_seconds: int = 0, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, _CartEntry] = {}
        self._registry_lock = threading.Lock()
        self._checkout_gates: Dict[str, _CheckoutGate] = {}
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)

    # ---- internals ----
    def _lock_entry(self, session_key: str, create: bool) -> Optional[_CartEntry]:
        while True:
            with self._registry_lock:
                entry = self._entries.get(session_key)
                if entry is None:
                    if not create:
                        return None
                    entry = _CartEntry(self._clock())
                    self._entries[session_key] = entry
            entry.lock.acquire()
            if not entry.closed:
                return entry
            entry.lock.release()

    def _drop(self, session_key: str, entry: _CartEntry) -> None:
        # Caller holds entry.lock
        entry.closed = True
        with self._registry_lock:
            if self._entries.get(session_key) is entry:
                del self._entries[session_key]

    @contextmanager
    def _cart(self, session_key: str, create: bool = False) -> Iterator[Optional[_CartEntry]]:
        entry = self._lock_entry(session_key, create)
        if entry is None:
            yield None
            return
        try:
            yield entry
        finally:
            entry.touched_at = self._clock()
            if not entry.items:
                self._drop(session_key, entry)
            entry.lock.release()

    # ---- operations ----
    def add_item(self, session_key: str, product_id: int, quantity: int) -> int:
        """Add ``quantity`` to the stored line and return the new quantity.

        The caller is responsible for checking that ``product_id`` exists in
        the catalog before calling this.
        """
        check_quantity(quantity)
        with self._cart(session_key, create=True) as entry:
            new_qty = entry.items.get(product_id, 0) + quantity
            if new_qty > MAX_QUANTITY:
                raise InvalidArgument(
                    f"Quantity in cart cannot exceed {MAX_QUANTITY}", fields=["quantity"]
                )
            entry.items[product_id] = new_qty
        logger.debug("Cart %s: product %s -> %s", session_key, product_id, new_qty)
        return new_qty

    def set_quantity(self, session_key: str, product_id: int, quantity: int) -> int:
        check_quantity(quantity)
        with self._cart(session_key) as entry:
            if entry is None or product_id not in entry.items:
                raise NotFound(f"Cart item for product {product_id} not found.")
            entry.items[product_id] = quantity
        return quantity

    def remove_item(self, session_key: str, product_id: int) -> bool:
        with self._cart(session_key) as entry:
            if entry is None:
                return False
            return entry.items.pop(product_id, None) is not None

    def read_quantities(self, session_key: str) -> Dict[int, int]:
        with self._cart(session_key) as entry:
            if entry is None:
                return {}
            return dict(entry.items)

    def clear(self, session_key: str, checked_out: Optional[Mapping[int, int]] = None) -> None:
        """Remove the cart.

        With ``checked_out`` only those quantities are taken out, so anything
        added after a checkout read the cart stays in it.
        """
        with self._cart(session_key) as entry:
            if entry is None:
                return
            if checked_out is None:
                entry.items.clear()
                return
            for product_id, quantity in checked_out.items():
                left = entry.items.get(product_id, 0) - quantity
                if left > 0:
                    entry.items[product_id] = left
                else:
                    entry.items.pop(product_id, None)

    @contextmanager
    def checkout_guard(self, session_key: str) -> Iterator[None]:
        """Serialise checkouts of one session. Cart mutations ignore this lock."""
        with self._registry_lock:
            gate = self._checkout_gates.get(session_key)
            if gate is None:
                gate = self._checkout_gates[session_key] = _CheckoutGate()
            gate.holders += 1
        try:
            with gate.lock:
                yield
        finally:
            with self._registry_lock:
                gate.holders -= 1
                if gate.holders == 0:
                    del self._checkout_gates[session_key]

    def evict_expired(self, now: Optional[float] = None) -> int:
        """Drop carts idle for longer than the TTL. Returns how many were dropped."""
        if self._ttl_seconds <= 0:
            return 0
        cutoff = (self._clock() if now is None else now) - self._ttl_seconds
        with self._registry_lock:
            candidates = [(k, e) for k, e in self._entries.items() if e.touched_at <= cutoff]

        evicted = 0
        for session_key, entry in candidates:
            with entry.lock:
                # Re-check: the cart may have been used since the snapshot
                if entry.closed or entry.touched_at > cutoff:
                    continue
                entry.items.clear()
                self._drop(session_key, entry)
                evicted += 1
        if evicted:
            logger.info("Evicted %d idle carts", evicted)
        return evicted
