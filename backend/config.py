# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./storefront.db"
    FRONTEND_URL: Optional[str] = None

    # Idle carts are kept forever unless a positive TTL is configured
    CART_TTL_SECONDS: int = 0
    CART_SWEEP_INTERVAL_SECONDS: int = 60

    # Insert the demo catalog on startup when the products table is empty
    SEED_DEMO_PRODUCTS: bool = True

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
