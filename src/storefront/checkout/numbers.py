"""Order number generation.

Order numbers look like ``ORD-3F9A1C0B7E2D``: a configurable prefix followed
by twelve uppercase hex characters drawn from a random UUID.
"""

import uuid
from collections.abc import Callable

import structlog

from storefront.settings import store_setting
from storefront.shared.exceptions import OrderNumberUnavailable

logger = structlog.get_logger(__name__)


class OrderNumberGenerator:
    def __init__(self, prefix=None, max_attempts=None):
        self.prefix = store_setting("ORDER_NUMBER_PREFIX") if prefix is None else prefix
        self.max_attempts = int(store_setting("ORDER_NUMBER_MAX_ATTEMPTS") if max_attempts is None else max_attempts)

    def candidate(self) -> str:
        return f"{self.prefix}{uuid.uuid4().hex[:12].upper()}"

    def next_unique(self, exists: Callable[[str], bool]) -> str:
        """Return a candidate that ``exists`` reports as unused.

        This is only a pre-check: two checkouts can still pick the same number,
        and the storage uniqueness constraint settles that race.
        """
        for attempt in range(1, self.max_attempts + 1):
            number = self.candidate()
            if not exists(number):
                return number
            logger.warning(
                "Order number already in use, generating another",
                order_number=number,
                attempt=attempt,
            )
        raise OrderNumberUnavailable(self.max_attempts)
