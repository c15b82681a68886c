"""Shared BDD fixtures and step definitions for the storefront domain."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when
from storefront.cart.cart import CartOwner, ShoppingCart
from storefront.cart.items import AddToCart
from storefront.cart.management import resolve_cart


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def context():
    """Mutable state shared by the steps of one scenario."""
    return {"cart_id": None, "order_number": None, "error": None}


@pytest.fixture()
def load_cart(context):
    """Re-read the scenario's cart from its repository."""

    def _load() -> ShoppingCart:
        return current_domain.repository_for(ShoppingCart).get(context["cart_id"])

    return _load


# ---------------------------------------------------------------------------
# Shared steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an empty cart for guest session "{session_id}"'))
def empty_guest_cart(context, session_id):
    context["cart_id"] = resolve_cart(CartOwner.for_guest(session_id))


@given(parsers.cfparse('{quantity:d} of product "{product_id}" named "{name}" at {price:d} are in the cart'))
@when(parsers.cfparse('{quantity:d} of product "{product_id}" named "{name}" at {price:d} are added'))
def add_product(context, quantity, product_id, name, price):
    try:
        current_domain.process(
            AddToCart(
                cart_id=context["cart_id"],
                product_id=product_id,
                quantity=quantity,
                name=name,
                unit_price=float(price),
            ),
            asynchronous=False,
        )
    except ValidationError as exc:
        context["error"] = exc


@then("the cart is empty")
def cart_is_empty(load_cart):
    cart = load_cart()
    assert cart.items == []
    assert cart.total == 0.0
