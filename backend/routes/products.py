# backend/routes/products.py
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from utils.audit import write_log
from models.product import Product
import schemas.product as product_schemas

router = APIRouter(prefix="/api", tags=["Products"])

# ---- HELPERS ----
def _product_to_out(product: Product) -> product_schemas.ProductOut:
    return product_schemas.ProductOut(
        id=product.id,
        name=product.name,
        price=float(product.price),
        description=product.description,
        image_url=product.image_url,
    )

def _apply(product: Product, data: product_schemas.ProductBase) -> None:
    values = data.model_dump()
    # Prices are stored as exact decimals with two places
    values["price"] = Decimal(str(values["price"])).quantize(Decimal("0.01"))
    for key, value in values.items():
        setattr(product, key, value)

def _get_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail=f"Product with ID {product_id} not found.")
    return product


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=List[product_schemas.ProductOut])
def list_products(
    q: Optional[str] = Query(None, description="Search by name"),
    db: Session = Depends(get_db),
):
    query = db.query(Product)
    if q:
        query = query.filter(Product.name.ilike(f"%{q}%"))
    return [_product_to_out(p) for p in query.order_by(Product.id.asc()).all()]


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _product_to_out(_get_or_404(db, product_id))


# =========================
# CREATE
# =========================
@router.post("/products", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    product = Product()
    _apply(product, payload)
    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(
        db, session_key=None, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=request.client.host if request.client else None,
        meta={"id": product.id, "name": product.name},
    )
    return _product_to_out(product)


# =========================
# UPDATE (PUT - full)
# =========================
@router.put("/products/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    product = _get_or_404(db, product_id)
    _apply(product, payload)
    db.commit()
    db.refresh(product)

    # Carts pick the new price up on their next read; placed orders keep their copy
    write_log(
        db, session_key=None, action="PRODUCT_UPDATE", resource="products",
        status="SUCCESS", ip=request.client.host if request.client else None,
        meta={"id": product.id},
    )
    return _product_to_out(product)


# =========================
# DELETE
# =========================
@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
):
    product = _get_or_404(db, product_id)
    db.delete(product)
    db.commit()

    write_log(
        db, session_key=None, action="PRODUCT_DELETE", resource="products",
        status="SUCCESS", ip=request.client.host if request.client else None,
        meta={"id": product_id},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
