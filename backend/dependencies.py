# backend/dependencies.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from services.cart_projector import CartService
from services.cart_store import CartStore
from services.catalog import SqlCatalog
from services.checkout import CheckoutWorkflow
from services.order_store import SqlOrderStore

# The cart store lives on the application object; there is one per process
def get_cart_store(request: Request) -> CartStore:
    return request.app.state.cart_store

def get_catalog(db: Session = Depends(get_db)) -> SqlCatalog:
    return SqlCatalog(db)

def get_order_store(db: Session = Depends(get_db)) -> SqlOrderStore:
    return SqlOrderStore(db)

def get_cart_service(
    store: CartStore = Depends(get_cart_store),
    catalog: SqlCatalog = Depends(get_catalog),
) -> CartService:
    return CartService(store, catalog)

def get_checkout(
    store: CartStore = Depends(get_cart_store),
    catalog: SqlCatalog = Depends(get_catalog),
    orders: SqlOrderStore = Depends(get_order_store),
) -> CheckoutWorkflow:
    return CheckoutWorkflow(store, catalog, orders)
