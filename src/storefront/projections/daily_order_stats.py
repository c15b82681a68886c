"""Daily order stats projection — per-day order counts and revenue.

Keyed by date (YYYY-MM-DD, UTC). Revenue is the sum of grand totals of
orders placed that day; cancelled orders are counted separately and not
subtracted.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.events import OrderCancelled, OrderPlaced
from storefront.order.order import Order
from storefront.shared.money import as_amount, to_decimal


@storefront.projection
class DailyOrderStats:
    date = String(identifier=True, required=True, max_length=10)  # YYYY-MM-DD
    orders_placed = Integer(default=0)
    orders_cancelled = Integer(default=0)
    total_revenue = Float(default=0.0)


def _get_or_create(date_key):
    repo = current_domain.repository_for(DailyOrderStats)
    try:
        return repo.get(date_key)
    except ObjectNotFoundError:
        return DailyOrderStats(
            date=date_key,
            orders_placed=0,
            orders_cancelled=0,
            total_revenue=0.0,
        )


@storefront.projector(projector_for=DailyOrderStats, aggregates=[Order])
class DailyOrderStatsProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        record = _get_or_create(event.placed_at.date().isoformat())
        record.orders_placed = (record.orders_placed or 0) + 1
        record.total_revenue = as_amount(to_decimal(record.total_revenue) + to_decimal(event.total))
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        record = _get_or_create(event.cancelled_at.date().isoformat())
        record.orders_cancelled = (record.orders_cancelled or 0) + 1
        current_domain.repository_for(DailyOrderStats).add(record)
