"""Storefront bounded context — Shopping Cart and Order placement.

Handles the per-owner shopping cart (CQRS), the checkout step that turns a
cart into an immutable order snapshot, and the read models behind the admin
dashboard.

Logging is configured by the ``app.py`` entry point through
``storefront.utils.logging.configure_logging()``.
"""

from protean.domain import Domain

from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
