# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings


def normalize_url(url: str) -> str:
    """Hosted Postgres hands out ``postgres://`` URLs; SQLAlchemy only knows ``postgresql://``."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def build_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        # Sessions are opened in FastAPI's worker threads, not the creating one
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **kwargs)


SQLALCHEMY_DATABASE_URL = normalize_url(settings.DATABASE_URL)

engine = build_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    # Register every model on Base.metadata before creating tables
    import models.product  # noqa: F401
    import models.order  # noqa: F401
    import models.log  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
