"""Shipping charge policies applied when a cart is checked out."""

from decimal import Decimal
from typing import Protocol

from storefront.settings import store_setting
from storefront.shared.money import quantize_amount


class ShippingPolicy(Protocol):
    def charge_for(self, cart) -> Decimal: ...


class FlatRateShipping:
    """The same shipping charge for every order, whatever is in the cart."""

    def __init__(self, amount=None):
        self.amount = quantize_amount(store_setting("SHIPPING_FLAT_RATE") if amount is None else amount)

    def charge_for(self, cart) -> Decimal:  # noqa: ARG002
        return self.amount
