import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from services.checkout import CheckoutWorkflow, validate_customer
from services.errors import DependencyFailure, EmptyCart, InvalidArgument
from services.catalog import ProductInfo
from services.order_store import CustomerInfo

CUSTOMER = CustomerInfo(name="Ada Lovelace", address="12 Analytical St, London", phone="+44 20 7946 0018")


@pytest.fixture()
def workflow(store, catalog, order_store):
    return CheckoutWorkflow(store, catalog, order_store)


def _fill(store):
    store.add_item("s1", 1, 2)
    store.add_item("s1", 2, 1)


class TestCheckout:
    def test_places_order_and_clears_cart(self, store, order_store, workflow):
        _fill(store)

        order = workflow.checkout("s1", CUSTOMER)

        assert order.total_amount == Decimal("45.00")
        assert sum(line.quantity for line in order.items) == 3
        assert [(l.product_name, l.price, l.quantity, l.total_price) for l in order.items] == [
            ("Wireless Mouse", Decimal("10.00"), 2, Decimal("20.00")),
            ("USB-C Hub", Decimal("25.00"), 1, Decimal("25.00")),
        ]
        assert order.customer_name == "Ada Lovelace"
        assert store.read_quantities("s1") == {}
        assert len(store) == 0
        assert list(order_store.orders) == [order.id]

    def test_never_used_cart(self, order_store, workflow):
        with pytest.raises(EmptyCart):
            workflow.checkout("s1", CUSTOMER)
        assert order_store.orders == {}

    def test_fully_removed_cart(self, store, order_store, workflow):
        store.add_item("s1", 1, 1)
        store.remove_item("s1", 1)

        with pytest.raises(EmptyCart):
            workflow.checkout("s1", CUSTOMER)
        assert order_store.orders == {}

    def test_cart_emptied_by_catalog_drift(self, store, catalog, order_store, workflow):
        store.add_item("s1", 1, 1)
        catalog.products.clear()

        with pytest.raises(EmptyCart):
            workflow.checkout("s1", CUSTOMER)
        assert order_store.orders == {}
        assert store.read_quantities("s1") == {1: 1}

    def test_drifted_lines_are_cleared_with_the_rest(self, store, catalog, workflow):
        _fill(store)
        del catalog.products[2]

        order = workflow.checkout("s1", CUSTOMER)

        assert [l.product_id for l in order.items] == [1]
        assert order.total_amount == Decimal("20.00")
        assert store.read_quantities("s1") == {}

    def test_total_too_large_for_an_order(self, store, catalog, order_store, workflow):
        catalog.products[3] = ProductInfo(id=3, name="Server Rack", price=Decimal("99999999.99"))
        store.add_item("s1", 3, 101)

        with pytest.raises(InvalidArgument) as exc:
            workflow.checkout("s1", CUSTOMER)

        assert exc.value.fields == ["quantity"]
        assert order_store.orders == {}
        assert store.read_quantities("s1") == {3: 101}

    def test_empty_cart_reported_before_customer_errors(self, workflow):
        with pytest.raises(EmptyCart):
            workflow.checkout("s1", CustomerInfo(name="", address="", phone=""))

    def test_invalid_customer_lists_fields(self, store, order_store, workflow):
        _fill(store)

        with pytest.raises(InvalidArgument) as exc:
            workflow.checkout("s1", CustomerInfo(name=" ", address="", phone="call me"))

        assert exc.value.fields == ["customerName", "address", "phone"]
        assert order_store.orders == {}
        assert store.read_quantities("s1") == {1: 2, 2: 1}

    def test_persist_failure_keeps_cart_and_retry_succeeds(self, store, order_store, workflow):
        _fill(store)
        order_store.down = True

        with pytest.raises(DependencyFailure):
            workflow.checkout("s1", CUSTOMER)
        assert store.read_quantities("s1") == {1: 2, 2: 1}
        assert order_store.orders == {}

        order_store.down = False
        order = workflow.checkout("s1", CUSTOMER)

        assert order.total_amount == Decimal("45.00")
        assert store.read_quantities("s1") == {}

    def test_clear_failure_still_returns_order(self, store, order_store, workflow, monkeypatch, caplog):
        _fill(store)

        def broken_clear(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(store, "clear", broken_clear)

        with caplog.at_level(logging.ERROR, logger="services.checkout"):
            order = workflow.checkout("s1", CUSTOMER)

        assert order.id in order_store.orders
        assert "could not be cleared" in caplog.text

    def test_items_added_while_saving_stay_in_cart(self, store, order_store, workflow):
        _fill(store)
        order_store.on_insert = lambda: store.add_item("s1", 2, 5)

        order = workflow.checkout("s1", CUSTOMER)

        assert order.total_amount == Decimal("45.00")
        assert store.read_quantities("s1") == {2: 5}


class TestIdempotency:
    def test_same_key_returns_same_order(self, store, order_store, workflow):
        _fill(store)
        first = workflow.checkout("s1", CUSTOMER, idempotency_key="key-1")

        # Retry after the shopper started a new cart: no second order
        store.add_item("s1", 1, 1)
        second = workflow.checkout("s1", CUSTOMER, idempotency_key="key-1")

        assert second.id == first.id
        assert len(order_store.orders) == 1
        assert store.read_quantities("s1") == {1: 1}

    def test_key_is_scoped_to_the_session(self, store, order_store, workflow):
        _fill(store)
        alice = workflow.checkout("s1", CUSTOMER, idempotency_key="k1")

        store.add_item("s2", 2, 2)
        bob_details = CustomerInfo(name="Bob", address="7 Side Rd", phone="555 0199")
        bob = workflow.checkout("s2", bob_details, idempotency_key="k1")

        assert bob.id != alice.id
        assert bob.customer_name == "Bob"
        assert bob.total_amount == Decimal("50.00")
        assert store.read_quantities("s2") == {}
        assert len(order_store.orders) == 2

    def test_double_submit_creates_one_order(self, store, order_store, workflow):
        _fill(store)
        order_store.on_insert = lambda: time.sleep(0.05)
        barrier = threading.Barrier(2)

        def submit():
            barrier.wait()
            try:
                return workflow.checkout("s1", CUSTOMER)
            except EmptyCart as e:
                return e

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = [f.result() for f in [pool.submit(submit), pool.submit(submit)]]

        assert len(order_store.orders) == 1
        assert sum(isinstance(r, EmptyCart) for r in results) == 1


class TestValidateCustomer:
    @pytest.mark.parametrize("phone", ["+1 (555) 123-4567", "020 7946 0018", "555.123.4567", "12345"])
    def test_accepts_phone_formats(self, phone):
        assert validate_customer(CustomerInfo(name="A", address="B", phone=phone)).phone == phone

    @pytest.mark.parametrize("phone", ["call me", "++44 1", "()-", "+1 555 123 4567 890 12 34"])
    def test_rejects_bad_phones(self, phone):
        with pytest.raises(InvalidArgument) as exc:
            validate_customer(CustomerInfo(name="A", address="B", phone=phone))
        assert exc.value.fields == ["phone"]

    def test_strips_whitespace(self):
        customer = validate_customer(CustomerInfo(name="  Ada ", address=" Street 1 ", phone=" 555 "))
        assert customer == CustomerInfo(name="Ada", address="Street 1", phone="555")

    def test_length_limits(self):
        with pytest.raises(InvalidArgument) as exc:
            validate_customer(CustomerInfo(name="x" * 101, address="y" * 501, phone="1"))
        assert exc.value.fields == ["customerName", "address"]
