"""Domain events for the Order aggregate.

Events are versioned, immutable facts. Projectors consume them to keep the
order summary and the dashboard statistics up to date.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out and turned into a new pending order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier()  # Empty for guest checkouts
    customer_name = String()
    payment_method = String(required=True)
    items = Text(required=True)  # JSON: list of item snapshots
    items_count = Integer(required=True)
    subtotal = Float(required=True)
    tax_amount = Float(required=True)
    shipping_amount = Float(required=True)
    total = Float(required=True)
    currency = String(required=True)
    crypto_amount = Float()
    crypto_currency = String()
    crypto_rate = Float()
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderProcessing:
    """Fulfillment started working on the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    started_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderShipped:
    """The order left the warehouse."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    shipped_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    """The order reached the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    delivered_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """An unpaid order was cancelled before it shipped."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    total = Float(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)
