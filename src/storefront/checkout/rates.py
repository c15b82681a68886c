"""Exchange rate sources for crypto-denominated payments."""

from types import MappingProxyType


class StaticRateSource:
    """Fixed mock rates, in the store currency, for one unit of each coin.

    There is no live feed: the same table is handed out for every checkout.
    """

    DEFAULT_RATES = MappingProxyType(
        {
            "BTC": 650_000_000.0,
            "ETH": 45_000_000.0,
        }
    )

    def __init__(self, rates=None):
        self._rates = dict(self.DEFAULT_RATES if rates is None else rates)

    def current_rates(self) -> dict[str, float]:
        """A fresh copy of the table, so callers can never alter the source."""
        return dict(self._rates)
