# backend/routes/cart.py
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_cart_service
from utils.audit import write_log
from services.cart_projector import CartService, PricedCartView, PricedLine
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut

router = APIRouter(prefix="/api/cart", tags=["Cart"])

# Opaque shopper token issued by the presentation tier
SessionKey = Annotated[str, Query(alias="sessionId", min_length=1)]

def _line_to_out(line: PricedLine) -> CartItemOut:
    return CartItemOut(
        product_id=line.product_id,
        product_name=line.name,
        price=float(line.price),
        quantity=line.quantity,
        total_price=float(line.total_price),
        image_url=line.image_url,
    )

def _cart_to_out(view: PricedCartView) -> CartOut:
    return CartOut(
        items=[_line_to_out(line) for line in view.items],
        grand_total=float(view.grand_total),
        total_items=view.total_items,
    )

@router.get("", response_model=CartOut)
def get_cart(
    session_id: SessionKey,
    cart: CartService = Depends(get_cart_service),
):
    return _cart_to_out(cart.view(session_id))

@router.post("/items", response_model=CartItemOut, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    session_id: SessionKey,
    cart: CartService = Depends(get_cart_service),
    db: Session = Depends(get_db),
):
    line = cart.add(session_id, payload.product_id, payload.quantity)

    write_log(
        db,
        session_key=session_id,
        action="CART_ADD",
        resource="cart",
        status="SUCCESS",
        ip=request.client.host if request.client else None,
        meta={"product_id": payload.product_id, "qty": payload.quantity, "line_qty": line.quantity},
    )
    return _line_to_out(line)

@router.put("/items/{product_id}", response_model=CartItemOut)
def update_cart_item(
    product_id: int,
    payload: CartUpdateItem,
    request: Request,
    session_id: SessionKey,
    cart: CartService = Depends(get_cart_service),
    db: Session = Depends(get_db),
):
    line = cart.update(session_id, product_id, payload.quantity)

    write_log(
        db,
        session_key=session_id,
        action="CART_UPDATE",
        resource="cart",
        status="SUCCESS",
        ip=request.client.host if request.client else None,
        meta={"product_id": product_id, "qty": payload.quantity},
    )
    return _line_to_out(line)

@router.delete("/items/{product_id}")
def delete_cart_item(
    product_id: int,
    request: Request,
    session_id: SessionKey,
    cart: CartService = Depends(get_cart_service),
    db: Session = Depends(get_db),
):
    if not cart.remove(session_id, product_id):
        raise HTTPException(status_code=404, detail="Cart item not found")

    write_log(
        db,
        session_key=session_id,
        action="CART_DELETE",
        resource="cart",
        status="SUCCESS",
        ip=request.client.host if request.client else None,
        meta={"product_id": product_id},
    )
    return {"message": "Item removed from cart."}

@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(
    session_id: SessionKey,
    cart: CartService = Depends(get_cart_service),
):
    cart.clear(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
