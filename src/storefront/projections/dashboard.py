"""Dashboard statistics, read from the order projections.

The admin dashboard covers every order in the store; the customer dashboard
covers one registered user's orders.
"""

from protean.utils.globals import current_domain

from storefront.order.order import OrderStatus
from storefront.projections.daily_order_stats import DailyOrderStats
from storefront.projections.order_summary import OrderSummary
from storefront.shared.money import ZERO, as_amount, to_decimal

PAGE_SIZE = 100


def _all_summaries(**filters):
    dao = current_domain.repository_for(OrderSummary)._dao
    offset = 0
    while True:
        query = dao.query.filter(**filters) if filters else dao.query
        page = query.order_by("placed_at").offset(offset).limit(PAGE_SIZE).all()
        yield from page.items
        offset += len(page.items)
        if not page.items or offset >= page.total:
            return


def recent_orders(limit: int = 5) -> list[dict]:
    dao = current_domain.repository_for(OrderSummary)._dao
    records = dao.query.order_by("-placed_at").limit(limit).all().items
    return [
        {
            "order_number": record.order_number,
            "customer_name": record.customer_name,
            "status": record.status,
            "payment_method": record.payment_method,
            "items_count": record.items_count,
            "total": record.total,
            "currency": record.currency,
            "placed_at": record.placed_at,
        }
        for record in records
    ]


def dashboard_stats(limit: int = 5) -> dict:
    """Order count, revenue across every order, and the latest orders."""
    total_orders = 0
    revenue = ZERO
    for summary in _all_summaries():
        total_orders += 1
        revenue += to_decimal(summary.total)

    return {
        "total_orders": total_orders,
        "total_revenue": as_amount(revenue),
        "recent_orders": recent_orders(limit),
    }


def customer_order_stats(user_id: str) -> dict:
    """Order counts and total spend for one registered user.

    Completed means delivered. Total spent includes cancelled orders, as the
    revenue figure on the admin dashboard does.
    """
    stats = {"total": 0, "pending": 0, "completed": 0}
    spent = ZERO
    for summary in _all_summaries(user_id=user_id):
        stats["total"] += 1
        if summary.status == OrderStatus.PENDING.value:
            stats["pending"] += 1
        elif summary.status == OrderStatus.DELIVERED.value:
            stats["completed"] += 1
        spent += to_decimal(summary.total)

    stats["total_spent"] = as_amount(spent)
    return stats


def daily_stats(days: int = 30) -> list[dict]:
    """Per-day order counts and revenue for the latest ``days`` days that had activity, newest first."""
    dao = current_domain.repository_for(DailyOrderStats)._dao
    records = dao.query.order_by("-date").limit(days).all().items
    return [
        {
            "date": record.date,
            "orders_placed": record.orders_placed or 0,
            "orders_cancelled": record.orders_cancelled or 0,
            "total_revenue": record.total_revenue or 0.0,
        }
        for record in records
    ]
