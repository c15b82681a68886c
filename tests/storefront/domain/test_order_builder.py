"""Tests for turning a cart into an order at checkout."""

from decimal import Decimal

import pytest
from protean.exceptions import ValidationError
from storefront.cart.cart import CartOwner, ShoppingCart
from storefront.checkout.builder import EMPTY_CART_MESSAGE, OrderBuilder
from storefront.checkout.shipping import FlatRateShipping
from storefront.order.order import OrderStatus, PaymentStatus


@pytest.fixture()
def cart():
    cart = ShoppingCart.create(CartOwner.for_user("user-1"))
    cart.add_item("prod-007", 4, name="Tee", unit_price=50000.0, sku="TEE")
    return cart


@pytest.fixture()
def builder():
    return OrderBuilder(number_exists=lambda number: False)


class TestBuildOrder:
    def test_bank_transfer_checkout(self, builder, cart, billing_address, shipping_address):
        order = builder.build(cart, "bank_transfer", billing_address, shipping_address)

        assert order.subtotal == 200000.0
        assert order.tax_amount == 0.0
        assert order.shipping_amount == 15.0
        assert order.total == 200015.0
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.crypto_amount is None
        assert order.crypto_currency is None
        assert order.crypto_rate is None

    def test_bitcoin_checkout_freezes_rate(self, builder, cart, billing_address, shipping_address):
        order = builder.build(
            cart,
            "bitcoin",
            billing_address,
            shipping_address,
            crypto_rates={"BTC": 650000000},
        )

        assert order.crypto_currency == "BTC"
        assert order.crypto_rate == 650000000.0
        assert order.crypto_amount == pytest.approx(order.total / 650000000, abs=1e-8)

    def test_ethereum_checkout(self, builder, cart, billing_address, shipping_address):
        order = builder.build(
            cart,
            "ethereum",
            billing_address,
            shipping_address,
            crypto_rates={"BTC": 650000000, "ETH": 45000000},
        )
        assert order.crypto_currency == "ETH"
        assert order.crypto_amount == pytest.approx(200015 / 45000000, abs=1e-8)

    def test_missing_rate_places_order_without_crypto_fields(self, builder, cart, billing_address, shipping_address):
        order = builder.build(cart, "ethereum", billing_address, shipping_address, crypto_rates={"BTC": 650000000})
        assert order.crypto_amount is None
        assert order.crypto_currency is None
        assert order.crypto_rate is None

    def test_fiat_checkout_ignores_rate_table(self, builder, cart, billing_address, shipping_address):
        order = builder.build(cart, "qris", billing_address, shipping_address, crypto_rates={"BTC": 650000000})
        assert order.crypto_currency is None

    def test_rate_table_is_not_mutated(self, builder, cart, billing_address, shipping_address):
        rates = {"BTC": 650000000, "ETH": 45000000}
        builder.build(cart, "bitcoin", billing_address, shipping_address, crypto_rates=rates)
        assert rates == {"BTC": 650000000, "ETH": 45000000}

    def test_order_owner_comes_from_cart(self, builder, cart, billing_address, shipping_address):
        order = builder.build(cart, "qris", billing_address, shipping_address)
        assert order.user_id == "user-1"

    def test_guest_cart_produces_guest_order(self, builder, billing_address, shipping_address):
        cart = ShoppingCart.create(CartOwner.for_guest("sess-1"))
        cart.add_item("prod-001", 1, name="Mug", unit_price=40000.0)
        order = builder.build(cart, "qris", billing_address, shipping_address)
        assert order.user_id is None

    def test_notes_are_kept(self, builder, cart, billing_address, shipping_address):
        order = builder.build(cart, "qris", billing_address, shipping_address, notes="Leave at the door")
        assert order.notes == "Leave at the door"

    def test_currency_comes_from_store_settings(self, builder, cart, billing_address, shipping_address):
        order = builder.build(cart, "qris", billing_address, shipping_address)
        assert order.currency == "IDR"

    def test_empty_cart_is_rejected(self, builder, billing_address, shipping_address):
        cart = ShoppingCart.create(CartOwner.for_guest("sess-empty"))
        with pytest.raises(ValidationError) as exc:
            builder.build(cart, "qris", billing_address, shipping_address)
        assert exc.value.messages["cart"] == [EMPTY_CART_MESSAGE]

    def test_unknown_payment_method_is_rejected(self, builder, cart, billing_address, shipping_address):
        with pytest.raises(ValidationError) as exc:
            builder.build(cart, "cash", billing_address, shipping_address)
        assert "payment_method" in exc.value.messages

    def test_order_number_has_prefix(self, builder, cart, billing_address, shipping_address):
        order = builder.build(cart, "qris", billing_address, shipping_address)
        assert order.order_number.startswith("ORD-")
        assert len(order.order_number) == len("ORD-") + 12

    def test_custom_shipping_policy(self, cart, billing_address, shipping_address):
        builder = OrderBuilder(shipping_policy=FlatRateShipping(25000), number_exists=lambda number: False)
        order = builder.build(cart, "qris", billing_address, shipping_address)
        assert order.shipping_amount == 25000.0
        assert order.total == 225000.0


class TestTotalsPrecision:
    def test_total_is_exact_to_the_minor_unit(self, builder, billing_address, shipping_address):
        cart = ShoppingCart.create(CartOwner.for_guest("sess-precision"))
        cart.add_item("p1", 3, name="Pen", unit_price=0.1)
        cart.add_item("p2", 7, name="Pad", unit_price=19.99)
        order = builder.build(cart, "qris", billing_address, shipping_address)

        parts = Decimal(str(order.subtotal)) + Decimal(str(order.tax_amount)) + Decimal(str(order.shipping_amount))
        assert Decimal(str(order.total)) == parts


class TestSnapshotIsolation:
    def test_order_items_survive_cart_changes(self, builder, cart, billing_address, shipping_address):
        order = builder.build(cart, "qris", billing_address, shipping_address)

        cart.update_item_quantity("prod-007", 9)
        cart.add_item("prod-999", 1, name="Late addition", unit_price=1.0)
        cart.clear()

        assert len(order.items) == 1
        assert order.items[0].quantity == 4
        assert order.items[0].name == "Tee"
        assert order.items_count == 4

    def test_builder_does_not_touch_the_cart(self, builder, cart, billing_address, shipping_address):
        builder.build(cart, "qris", billing_address, shipping_address)
        assert cart.items_count == 4
        assert cart.subtotal == 200000.0
