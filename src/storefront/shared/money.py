"""Monetary helpers for settlement and cryptocurrency amounts.

Protean stores amounts in ``Float`` fields. All arithmetic goes through
``Decimal`` and is rounded to the currency's minor unit before being stored,
so sums stay exact at that precision.
"""

from decimal import ROUND_HALF_UP, Decimal

SETTLEMENT_MINOR_UNIT = Decimal("0.01")
CRYPTO_MINOR_UNIT = Decimal("0.00000001")

ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """Convert a stored amount to Decimal. ``None`` counts as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_amount(value) -> Decimal:
    return to_decimal(value).quantize(SETTLEMENT_MINOR_UNIT, rounding=ROUND_HALF_UP)


def quantize_crypto(value) -> Decimal:
    return to_decimal(value).quantize(CRYPTO_MINOR_UNIT, rounding=ROUND_HALF_UP)


def as_amount(value) -> float:
    """Quantized settlement amount, ready for a ``Float`` field."""
    return float(quantize_amount(value))
