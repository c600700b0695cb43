# backend/routes/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_checkout, get_order_store
from utils.audit import write_log
from services.checkout import CheckoutWorkflow
from services.order_store import CustomerInfo, OrderSnapshot, SqlOrderStore
from schemas.order import OrderCreatePayload, OrderItemOut, OrderResponse

router = APIRouter(prefix="/api/orders", tags=["Orders"])

# Map an order snapshot to the OrderResponse schema
def _order_to_out(order: OrderSnapshot) -> OrderResponse:
    items = [
        OrderItemOut(
            product_id=it.product_id,
            product_name=it.product_name,
            price=float(it.price),
            quantity=it.quantity,
            total_price=float(it.total_price),
        )
        for it in order.items
    ]
    return OrderResponse(
        id=order.id,
        customer_name=order.customer_name,
        address=order.address,
        phone=order.phone,
        order_date=order.created_at,
        total_amount=float(order.total_amount),
        order_items=items,
    )

# Check out the shopper's cart: persist the order, then empty the cart
@router.post("", response_model=OrderResponse)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    checkout: CheckoutWorkflow = Depends(get_checkout),
    db: Session = Depends(get_db),
):
    customer = CustomerInfo(
        name=payload.customer_name or "",
        address=payload.address or "",
        phone=payload.phone or "",
    )
    order = checkout.checkout(payload.session_id, customer, idempotency_key=idempotency_key)

    write_log(
        db,
        session_key=payload.session_id,
        action="ORDER_CREATE",
        resource="orders",
        status="SUCCESS",
        ip=request.client.host if request.client else None,
        meta={"order_id": order.id, "total": float(order.total_amount), "lines": len(order.items)},
    )
    return _order_to_out(order)

# Get details of a specific order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    orders: SqlOrderStore = Depends(get_order_store),
):
    order = orders.get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return _order_to_out(order)
