from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base

class Order(Base):
    __tablename__ = "orders"
    # A retry key only identifies an order within the cart that placed it
    __table_args__ = (
        UniqueConstraint("session_key", "idempotency_key", name="uq_orders_session_idempotency"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Shipping details supplied at checkout
    customer_name = Column(String(100), nullable=False)
    address = Column(String(500), nullable=False)
    phone = Column(String(20), nullable=False)

    # Cart the order was placed from and the optional client retry key
    session_key = Column(String(255), nullable=True, index=True)
    idempotency_key = Column(String(255), nullable=True)

    # Set by the order store at insert time (UTC); the server default covers manual inserts
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    total_amount = Column(Numeric(12, 2), nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

# Frozen copy of a cart line at checkout time; product_id is not a foreign key,
# catalog edits and deletions leave placed orders unchanged
class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    product_name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")
