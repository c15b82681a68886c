"""Conversion of an order total into a cryptocurrency amount."""

from collections.abc import Mapping
from decimal import Decimal

from protean.exceptions import ValidationError

from storefront.order.order import PaymentMethod
from storefront.shared.money import quantize_crypto, to_decimal


def crypto_quote(payment_method, total, rates: Mapping | None) -> tuple[Decimal, str, Decimal] | None:
    """Price ``total`` in the coin behind ``payment_method``.

    Returns ``(amount, symbol, rate)``, or None when the method is not a
    crypto payment or the table has no rate for its symbol. ``rates`` maps
    uppercase symbols to the price of one coin in the store currency and is
    only read.
    """
    method = PaymentMethod(payment_method)
    if not method.is_crypto or not rates:
        return None

    symbol = method.crypto_symbol
    if rates.get(symbol) is None:
        return None

    rate = to_decimal(rates[symbol])
    if rate <= 0:
        raise ValidationError({"crypto_rate": [f"Exchange rate for {symbol} must be positive"]})

    return quantize_crypto(to_decimal(total) / rate), symbol, rate
