import os
import sys
from decimal import Decimal

# Add 'backend' folder to Python path when run as a script
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from sqlalchemy.orm import Session

from models.product import Product
from database import SessionLocal, init_db

# Demo catalog inserted into an empty database
DEMO_PRODUCTS = [
    {
        "name": "Wireless Mouse",
        "price": Decimal("29.99"),
        "description": "Ergonomic wireless mouse with high precision sensor.",
        "image_url": "https://images.unsplash.com/photo-1527814050087-3793815479db?w=400",
    },
    {
        "name": "Mechanical Keyboard",
        "price": Decimal("89.99"),
        "description": "RGB backlit mechanical keyboard with cherry MX switches.",
        "image_url": "https://images.unsplash.com/photo-1587829741301-dc798b83add3?w=400",
    },
    {
        "name": "USB-C Hub",
        "price": Decimal("45.99"),
        "description": "Multi-port USB-C hub with HDMI and SD card support.",
        "image_url": "https://images.unsplash.com/photo-1625842268584-8f3296236761?w=400",
    },
    {
        "name": "Laptop Stand",
        "price": Decimal("34.99"),
        "description": "Adjustable aluminum laptop stand for better ergonomics.",
        "image_url": "https://images.unsplash.com/photo-1593541937377-c7d0e0f8bf9a?w=400",
    },
    {
        "name": "Wireless Headphones",
        "price": Decimal("129.99"),
        "description": "Noise-cancelling wireless headphones with 30-hour battery.",
        "image_url": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=400",
    },
]


def seed_products(session: Session) -> int:
    """Insert the demo catalog if the products table is empty. Returns rows inserted."""
    if session.query(Product).first() is not None:
        return 0
    session.add_all(Product(**data) for data in DEMO_PRODUCTS)
    session.commit()
    return len(DEMO_PRODUCTS)


if __name__ == "__main__":
    init_db()
    session = SessionLocal()
    try:
        inserted = seed_products(session)
    finally:
        session.close()
    print(f"Inserted {inserted} products.")
