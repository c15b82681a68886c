"""Order Builder — turns a checked-out cart into a new, unsaved Order.

The builder copies the cart lines, adds shipping, works out the grand total
and, for crypto payments, freezes the exchange rate supplied for this
checkout. It never touches the cart; clearing it is the caller's job once
the order has been stored.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.checkout.crypto import crypto_quote
from storefront.checkout.numbers import OrderNumberGenerator
from storefront.checkout.shipping import FlatRateShipping, ShippingPolicy
from storefront.order.order import Order, PaymentMethod
from storefront.settings import store_setting
from storefront.shared.money import quantize_amount

logger = structlog.get_logger(__name__)

EMPTY_CART_MESSAGE = "Your cart is empty."


def _order_number_in_use(order_number: str) -> bool:
    return current_domain.repository_for(Order).order_number_exists(order_number)


class OrderBuilder:
    def __init__(
        self,
        shipping_policy: ShippingPolicy | None = None,
        number_generator=None,
        number_exists=None,
        currency=None,
    ):
        self.shipping_policy = shipping_policy or FlatRateShipping()
        self.number_generator = number_generator or OrderNumberGenerator()
        self.number_exists = number_exists or _order_number_in_use
        self.currency = currency or store_setting("STORE_CURRENCY")

    def build(
        self,
        cart,
        payment_method,
        billing_address: dict,
        shipping_address: dict,
        notes=None,
        crypto_rates=None,
    ) -> Order:
        if cart.is_empty:
            raise ValidationError({"cart": [EMPTY_CART_MESSAGE]})

        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError({"payment_method": [f"Unsupported payment method: {payment_method}"]}) from None

        subtotal = quantize_amount(cart.subtotal)
        tax_amount = quantize_amount(cart.tax_amount)
        shipping_amount = quantize_amount(self.shipping_policy.charge_for(cart))
        total = quantize_amount(subtotal + tax_amount + shipping_amount)

        crypto = crypto_quote(method, total, crypto_rates)
        if method.is_crypto and crypto is None:
            logger.warning(
                "No exchange rate for crypto payment, placing order without crypto amount",
                cart_id=str(cart.id),
                payment_method=method.value,
                symbol=method.crypto_symbol,
            )

        return Order.place(
            order_number=self.number_generator.next_unique(self.number_exists),
            payment_method=method,
            items_data=cart.snapshot_items(),
            billing_address=dict(billing_address),
            shipping_address=dict(shipping_address),
            pricing={
                "subtotal": subtotal,
                "tax_amount": tax_amount,
                "shipping_amount": shipping_amount,
                "total": total,
                "currency": self.currency,
            },
            crypto=crypto,
            user_id=cart.user_id,
            notes=notes,
        )
