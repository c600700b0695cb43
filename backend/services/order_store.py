# backend/services/order_store.py
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from models.order import Order, OrderItem
from services.errors import DependencyFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    address: str
    phone: str


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    product_name: str
    price: Decimal
    quantity: int
    total_price: Decimal


@dataclass(frozen=True)
class OrderSnapshot:
    id: int
    customer_name: str
    address: str
    phone: str
    created_at: Optional[datetime]
    total_amount: Decimal
    items: Tuple[OrderLine, ...]

    @classmethod
    def from_row(cls, order: Order) -> "OrderSnapshot":
        created_at = order.created_at
        if created_at is not None and created_at.tzinfo is None:
            # SQLite drops the offset; stored timestamps are UTC
            created_at = created_at.replace(tzinfo=timezone.utc)
        return cls(
            id=order.id,
            customer_name=order.customer_name,
            address=order.address,
            phone=order.phone,
            created_at=created_at,
            total_amount=Decimal(str(order.total_amount)),
            items=tuple(
                OrderLine(
                    product_id=it.product_id,
                    product_name=it.product_name,
                    price=Decimal(str(it.price)),
                    quantity=it.quantity,
                    total_price=Decimal(str(it.total_price)),
                )
                for it in order.items
            ),
        )


class SqlOrderStore:
    """Append-only order persistence on top of the orders/order_items tables."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Order).options(selectinload(Order.items))

    def get(self, order_id: int) -> Optional[OrderSnapshot]:
        try:
            order = self._query().filter(Order.id == order_id).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Loading order %s failed: %s", order_id, e)
            raise DependencyFailure("Order store is unavailable") from e
        return OrderSnapshot.from_row(order) if order else None

    def find_by_idempotency_key(self, session_key: str, key: str) -> Optional[OrderSnapshot]:
        """Order placed from ``session_key`` under retry key ``key``, if any."""
        try:
            order = (
                self._query()
                .filter(Order.session_key == session_key, Order.idempotency_key == key)
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Idempotency lookup failed: %s", e)
            raise DependencyFailure("Order store is unavailable") from e
        return OrderSnapshot.from_row(order) if order else None

    def insert(self, *, session_key: str, customer: CustomerInfo, view, idempotency_key: Optional[str] = None) -> OrderSnapshot:
        """Persist a priced cart view as a new order and return it with its id.

        The snapshot is built from the flushed rows before the commit, so once
        the commit succeeds nothing else touches the database.
        """
        order = Order(
            customer_name=customer.name,
            address=customer.address,
            phone=customer.phone,
            session_key=session_key,
            idempotency_key=idempotency_key,
            created_at=datetime.now(timezone.utc),
            total_amount=view.grand_total,
        )
        order.items = [
            OrderItem(
                product_id=line.product_id,
                product_name=line.name,
                price=line.price,
                quantity=line.quantity,
                total_price=line.total_price,
            )
            for line in view.items
        ]
        try:
            self.db.add(order)
            self.db.flush()
            snapshot = OrderSnapshot.from_row(order)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # Another request from the same cart committed this retry key first
            if idempotency_key:
                existing = self.find_by_idempotency_key(session_key, idempotency_key)
                if existing is not None:
                    return existing
            logger.exception("Persisting order for cart %s failed: %s", session_key, e)
            raise DependencyFailure("Order could not be saved") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Persisting order for cart %s failed: %s", session_key, e)
            raise DependencyFailure("Order could not be saved") from e

        return snapshot
