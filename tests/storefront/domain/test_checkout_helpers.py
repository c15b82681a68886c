"""Tests for order numbers, crypto quotes, shipping and rate sources."""

from decimal import Decimal

import pytest
from protean.exceptions import ValidationError
from storefront.checkout.crypto import crypto_quote
from storefront.checkout.numbers import OrderNumberGenerator
from storefront.checkout.rates import StaticRateSource
from storefront.checkout.shipping import FlatRateShipping
from storefront.shared.exceptions import OrderNumberUnavailable


class TestOrderNumberGenerator:
    def test_candidate_format(self):
        number = OrderNumberGenerator().candidate()
        assert number.startswith("ORD-")
        suffix = number[len("ORD-") :]
        assert len(suffix) == 12
        assert suffix == suffix.upper()
        int(suffix, 16)

    def test_candidates_differ(self):
        generator = OrderNumberGenerator()
        assert len({generator.candidate() for _ in range(50)}) == 50

    def test_skips_numbers_in_use(self):
        generator = OrderNumberGenerator()
        seen = []

        def exists(number):
            seen.append(number)
            return len(seen) < 3

        number = generator.next_unique(exists)
        assert number == seen[-1]
        assert len(seen) == 3

    def test_gives_up_after_max_attempts(self):
        generator = OrderNumberGenerator(max_attempts=3)
        calls = []

        def exists(number):
            calls.append(number)
            return True

        with pytest.raises(OrderNumberUnavailable) as exc:
            generator.next_unique(exists)
        assert exc.value.attempts == 3
        assert len(calls) == 3

    def test_custom_prefix(self):
        assert OrderNumberGenerator(prefix="WEB-").candidate().startswith("WEB-")


class TestCryptoQuote:
    def test_bitcoin_quote(self):
        amount, symbol, rate = crypto_quote("bitcoin", Decimal("200015.00"), {"BTC": 650000000})
        assert symbol == "BTC"
        assert rate == Decimal("650000000")
        assert amount == Decimal("0.00030772")

    def test_fiat_method_has_no_quote(self):
        assert crypto_quote("bank_transfer", Decimal("100"), {"BTC": 650000000}) is None

    def test_missing_symbol_has_no_quote(self):
        assert crypto_quote("ethereum", Decimal("100"), {"BTC": 650000000}) is None

    def test_no_rate_table_has_no_quote(self):
        assert crypto_quote("bitcoin", Decimal("100"), None) is None

    def test_non_positive_rate_is_rejected(self):
        with pytest.raises(ValidationError):
            crypto_quote("bitcoin", Decimal("100"), {"BTC": 0})


class TestFlatRateShipping:
    def test_default_rate_comes_from_settings(self):
        assert FlatRateShipping().charge_for(cart=None) == Decimal("15.00")

    def test_explicit_rate(self):
        assert FlatRateShipping(9.5).charge_for(cart=None) == Decimal("9.50")


class TestStaticRateSource:
    def test_default_rates(self):
        rates = StaticRateSource().current_rates()
        assert rates == {"BTC": 650000000.0, "ETH": 45000000.0}

    def test_returned_table_is_a_copy(self):
        source = StaticRateSource()
        rates = source.current_rates()
        rates["BTC"] = 1.0
        assert source.current_rates()["BTC"] == 650000000.0
