# backend/main.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

load_dotenv()

from config import settings
from database import SessionLocal, init_db
from populate_db import seed_products
from services.cart_store import CartStore
from services.errors import DependencyFailure, InvalidArgument, StoreError

# Routers
from routes.cart import router as cart_router
from routes.orders import router as orders_router
from routes.products import router as products_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def _sweep_idle_carts(store: CartStore, interval: int):
    while True:
        await asyncio.sleep(interval)
        try:
            await run_in_threadpool(store.evict_expired)
        except Exception:
            logger.exception("Idle cart sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if settings.SEED_DEMO_PRODUCTS:
        db = SessionLocal()
        try:
            inserted = seed_products(db)
        finally:
            db.close()
        if inserted:
            logger.info("Seeded %d demo products", inserted)

    sweeper = None
    if settings.CART_TTL_SECONDS > 0:
        sweeper = asyncio.create_task(
            _sweep_idle_carts(app.state.cart_store, settings.CART_SWEEP_INTERVAL_SECONDS)
        )
        logger.info("Idle carts expire after %ss", settings.CART_TTL_SECONDS)
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()


def _register_error_handlers(app: FastAPI):
    @app.exception_handler(InvalidArgument)
    async def invalid_argument_handler(request: Request, exc: InvalidArgument):
        return JSONResponse(status_code=400, content={"detail": exc.message, "fields": exc.fields})

    @app.exception_handler(DependencyFailure)
    async def dependency_failure_handler(request: Request, exc: DependencyFailure):
        # Cause is already logged where it happened; callers get no internals
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # NotFound and EmptyCart
    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app(cart_store: Optional[CartStore] = None) -> FastAPI:
    app = FastAPI(title="Storefront API", version="1.0.0", lifespan=lifespan)

    # One cart store per process, shared by every request
    if cart_store is None:
        cart_store = CartStore(ttl_seconds=settings.CART_TTL_SECONDS)
    app.state.cart_store = cart_store

    # CORS Configuration
    origins = [
        "http://localhost:5192",
        "https://localhost:7124",
    ]
    if settings.FRONTEND_URL:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    # Router registration
    app.include_router(products_router)
    app.include_router(cart_router)
    app.include_router(orders_router)

    @app.get("/")
    def read_root():
        return {"message": "Storefront API is running"}

    return app


app = create_app()
