import threading
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import build_engine, get_db, init_db
from main import create_app
from models.product import Product
from services.cart_store import CartStore
from services.catalog import ProductInfo
from services.errors import DependencyFailure
from services.order_store import OrderLine, OrderSnapshot


class FakeCatalog:
    """Dict-backed catalog that records lookups and can be switched off."""

    def __init__(self, products=()):
        self.products = {p.id: p for p in products}
        self.lookups = []
        self.down = False

    def get(self, product_id):
        self.lookups.append(product_id)
        if self.down:
            raise DependencyFailure("Product catalog is unavailable")
        return self.products.get(product_id)


class FakeOrderStore:
    """In-memory order store; ``down`` makes inserts fail, ``on_insert`` runs mid-insert."""

    def __init__(self):
        self.orders = {}
        self.by_key = {}
        self.down = False
        self.on_insert = None
        self._lock = threading.Lock()

    def insert(self, *, session_key, customer, view, idempotency_key=None):
        if self.on_insert is not None:
            self.on_insert()
        if self.down:
            raise DependencyFailure("Order could not be saved")
        with self._lock:
            order = OrderSnapshot(
                id=len(self.orders) + 1,
                customer_name=customer.name,
                address=customer.address,
                phone=customer.phone,
                created_at=None,
                total_amount=view.grand_total,
                items=tuple(
                    OrderLine(
                        product_id=line.product_id,
                        product_name=line.name,
                        price=line.price,
                        quantity=line.quantity,
                        total_price=line.total_price,
                    )
                    for line in view.items
                ),
            )
            self.orders[order.id] = order
            if idempotency_key:
                self.by_key[(session_key, idempotency_key)] = order
        return order

    def get(self, order_id):
        return self.orders.get(order_id)

    def find_by_idempotency_key(self, session_key, key):
        return self.by_key.get((session_key, key))


PRODUCT_A = ProductInfo(id=1, name="Wireless Mouse", price=Decimal("10.00"))
PRODUCT_B = ProductInfo(id=2, name="USB-C Hub", price=Decimal("25.00"), image_url="https://example.com/hub.jpg")


@pytest.fixture()
def store():
    return CartStore()


@pytest.fixture()
def catalog():
    return FakeCatalog([PRODUCT_A, PRODUCT_B])


@pytest.fixture()
def order_store():
    return FakeOrderStore()


# ---- database / HTTP fixtures ----

@pytest.fixture()
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def products(db):
    """Two catalog rows: id 1 at 10.00 and id 2 at 25.00."""
    rows = [
        Product(name="Wireless Mouse", price=Decimal("10.00"), description="Mouse"),
        Product(name="USB-C Hub", price=Decimal("25.00"), image_url="https://example.com/hub.jpg"),
    ]
    db.add_all(rows)
    db.commit()
    return [row.id for row in rows]


@pytest.fixture()
def app(session_factory, store):
    app = create_app(cart_store=store)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    return TestClient(app)
