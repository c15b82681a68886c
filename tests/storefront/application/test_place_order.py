"""Application tests for placing an order from a cart."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.cart.cart import CartOwner, ShoppingCart
from storefront.cart.items import AddToCart
from storefront.cart.management import resolve_cart
from storefront.checkout.numbers import OrderNumberGenerator
from storefront.checkout.placement import PlaceOrder
from storefront.order.order import Order
from storefront.order.repository import OrderRepository
from storefront.shared.exceptions import OrderNumberUnavailable


@pytest.fixture()
def cart_id():
    cart_id = resolve_cart(CartOwner.for_user("user-1"))
    current_domain.process(
        AddToCart(cart_id=cart_id, product_id="prod-007", quantity=4, name="Tee", unit_price=50000.0, sku="TEE"),
        asynchronous=False,
    )
    return cart_id


def _place(cart_id, billing_address, shipping_address, payment_method="bank_transfer", crypto_rates=None):
    return current_domain.process(
        PlaceOrder(
            cart_id=cart_id,
            payment_method=payment_method,
            billing_address=json.dumps(billing_address),
            shipping_address=json.dumps(shipping_address),
            notes="Ring twice",
            crypto_rates=json.dumps(crypto_rates) if crypto_rates else None,
        ),
        asynchronous=False,
    )


def _get_cart(cart_id):
    return current_domain.repository_for(ShoppingCart).get(cart_id)


def _get_order(order_number):
    return current_domain.repository_for(Order).get_by_order_number(order_number)


class TestPlaceOrder:
    def test_bank_transfer_order_is_persisted(self, cart_id, billing_address, shipping_address):
        order_number = _place(cart_id, billing_address, shipping_address)

        order = _get_order(order_number)
        assert order.total == 200015.0
        assert order.status == "pending"
        assert order.payment_status == "pending"
        assert order.crypto_currency is None
        assert order.notes == "Ring twice"
        assert order.user_id == "user-1"
        assert order.items_count == 4
        assert order.billing_address.email == "siti@example.com"

    def test_cart_is_cleared_after_placement(self, cart_id, billing_address, shipping_address):
        _place(cart_id, billing_address, shipping_address)
        cart = _get_cart(cart_id)
        assert cart.items == []
        assert cart.subtotal == 0.0
        assert cart.total == 0.0

    def test_cart_is_reused_not_deleted(self, cart_id, billing_address, shipping_address):
        _place(cart_id, billing_address, shipping_address)
        assert resolve_cart(CartOwner.for_user("user-1")) == cart_id

    def test_bitcoin_order(self, cart_id, billing_address, shipping_address):
        order_number = _place(
            cart_id, billing_address, shipping_address, payment_method="bitcoin", crypto_rates={"BTC": 650000000}
        )
        order = _get_order(order_number)
        assert order.crypto_currency == "BTC"
        assert order.crypto_rate == 650000000.0
        assert order.crypto_amount == pytest.approx(200015 / 650000000, abs=1e-8)

    def test_missing_rate_still_places_order(self, cart_id, billing_address, shipping_address):
        order_number = _place(cart_id, billing_address, shipping_address, payment_method="ethereum")
        order = _get_order(order_number)
        assert order.crypto_amount is None
        assert order.crypto_currency is None
        assert order.crypto_rate is None
        assert _get_cart(cart_id).items == []

    def test_order_items_survive_later_cart_changes(self, cart_id, billing_address, shipping_address):
        order_number = _place(cart_id, billing_address, shipping_address)
        current_domain.process(
            AddToCart(cart_id=cart_id, product_id="prod-007", quantity=9, name="Tee", unit_price=1.0),
            asynchronous=False,
        )
        order = _get_order(order_number)
        assert [(item.product_id, item.quantity, item.unit_price) for item in order.items] == [
            ("prod-007", 4, 50000.0)
        ]

    def test_order_numbers_are_unique(self, billing_address, shipping_address):
        numbers = set()
        for index in range(10):
            cart_id = resolve_cart(CartOwner.for_guest(f"sess-{index}"))
            current_domain.process(
                AddToCart(cart_id=cart_id, product_id="prod-001", quantity=1, name="Mug", unit_price=40000.0),
                asynchronous=False,
            )
            numbers.add(_place(cart_id, billing_address, shipping_address))
        assert len(numbers) == 10

    def test_empty_cart_is_rejected(self, billing_address, shipping_address):
        cart_id = resolve_cart(CartOwner.for_guest("sess-empty"))
        with pytest.raises(ValidationError):
            _place(cart_id, billing_address, shipping_address)
        assert current_domain.repository_for(Order)._dao.query.all().total == 0

    def test_invalid_billing_email_leaves_cart_intact(self, cart_id, billing_address, shipping_address):
        with pytest.raises(ValidationError):
            _place(cart_id, {**billing_address, "email": "nope"}, shipping_address)
        assert _get_cart(cart_id).items_count == 4


class TestPlacementFailures:
    def test_storage_failure_leaves_cart_intact(self, monkeypatch, cart_id, billing_address, shipping_address):
        def broken_add(self, item):
            raise ConnectionError("database unavailable")

        monkeypatch.setattr(OrderRepository, "add", broken_add)

        with pytest.raises(ConnectionError):
            _place(cart_id, billing_address, shipping_address)

        monkeypatch.undo()
        cart = _get_cart(cart_id)
        assert cart.items_count == 4
        assert cart.subtotal == 200000.0

    def test_order_number_conflict_on_save_is_retried(self, monkeypatch, cart_id, billing_address, shipping_address):
        taken = _place(cart_id, billing_address, shipping_address)

        # Skip the pre-check so the storage uniqueness constraint is what catches the clash
        monkeypatch.setattr("storefront.checkout.builder._order_number_in_use", lambda order_number: False)
        candidates = iter([taken, "ORD-FRESHFRESH01"])
        monkeypatch.setattr(OrderNumberGenerator, "candidate", lambda self: next(candidates))

        other_cart = resolve_cart(CartOwner.for_guest("sess-clash"))
        current_domain.process(
            AddToCart(cart_id=other_cart, product_id="prod-001", quantity=1, name="Mug", unit_price=40000.0),
            asynchronous=False,
        )
        order_number = _place(other_cart, billing_address, shipping_address)

        assert order_number == "ORD-FRESHFRESH01"
        stored = [order.order_number for order in current_domain.repository_for(Order)._dao.query.all().items]
        assert sorted(stored) == sorted([taken, "ORD-FRESHFRESH01"])
        assert _get_order(taken).user_id == "user-1"
        assert _get_order(order_number).total == 40015.0
        assert _get_cart(other_cart).items == []

    def test_exhausted_order_numbers(self, monkeypatch, cart_id, billing_address, shipping_address):
        monkeypatch.setattr(OrderNumberGenerator, "candidate", lambda self: "ORD-SAMESAMESAME")
        first = _place(cart_id, billing_address, shipping_address)
        assert first == "ORD-SAMESAMESAME"

        other_cart = resolve_cart(CartOwner.for_guest("sess-other"))
        current_domain.process(
            AddToCart(cart_id=other_cart, product_id="prod-001", quantity=1, name="Mug", unit_price=40000.0),
            asynchronous=False,
        )
        with pytest.raises(OrderNumberUnavailable):
            _place(other_cart, billing_address, shipping_address)
        assert _get_cart(other_cart).items_count == 1
