"""Order placement — checking out a cart.

The order is stored first and the cart is cleared afterwards, in the same
unit of work. If storing the order fails the cart is left exactly as it was,
so the buyer can simply try again.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.checkout.builder import OrderBuilder
from storefront.domain import storefront
from storefront.order.order import Order, PaymentMethod
from storefront.shared.exceptions import OrderNumberUnavailable

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    cart_id = Identifier(required=True)
    payment_method = String(required=True, choices=PaymentMethod)
    billing_address = Text(required=True)  # JSON: BillingAddress fields
    shipping_address = Text(required=True)  # JSON: ShippingAddress fields
    notes = Text()
    crypto_rates = Text()  # JSON: {"BTC": 650000000.0, ...}, only for crypto payments


def _load_json(value):
    if value is None or not isinstance(value, str):
        return value
    return json.loads(value)


def _is_order_number_conflict(exc: ValidationError) -> bool:
    return "order_number" in (exc.messages or {})


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    builder_factory = OrderBuilder

    @handle(PlaceOrder)
    def place_order(self, command):
        cart_repo = current_domain.repository_for(ShoppingCart)
        order_repo = current_domain.repository_for(Order)

        cart = cart_repo.get(command.cart_id)
        builder = self.builder_factory()
        billing_address = _load_json(command.billing_address)
        shipping_address = _load_json(command.shipping_address)
        crypto_rates = _load_json(command.crypto_rates)

        order = None
        for attempt in range(1, builder.number_generator.max_attempts + 1):
            candidate = builder.build(
                cart,
                payment_method=command.payment_method,
                billing_address=billing_address,
                shipping_address=shipping_address,
                notes=command.notes,
                crypto_rates=crypto_rates,
            )
            try:
                order_repo.add(candidate)
            except ValidationError as exc:
                if not _is_order_number_conflict(exc):
                    raise
                logger.warning(
                    "Order number taken when saving, retrying with a new one",
                    order_number=candidate.order_number,
                    attempt=attempt,
                )
                continue
            order = candidate
            break

        if order is None:
            raise OrderNumberUnavailable(builder.number_generator.max_attempts)

        cart.clear()
        cart_repo.add(cart)

        logger.info(
            "Placed order from cart",
            order_number=order.order_number,
            cart_id=str(cart.id),
            payment_method=order.payment_method,
            total=order.total,
            currency=order.currency,
        )
        return order.order_number
