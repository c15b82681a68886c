"""Order summary — lightweight listing view used by the admin dashboard."""

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderShipped,
)
from storefront.order.order import Order, OrderStatus, PaymentStatus

GUEST_CUSTOMER_NAME = "Guest"


@storefront.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    order_number = String(required=True, max_length=50)
    user_id = Identifier()
    customer_name = String(max_length=511)
    status = String(required=True)
    payment_status = String()
    payment_method = String()
    items_count = Integer(default=0)
    total = Float(default=0.0)
    currency = String(max_length=3)
    placed_at = DateTime()
    updated_at = DateTime()


@storefront.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                order_number=event.order_number,
                user_id=event.user_id,
                customer_name=event.customer_name if event.user_id else GUEST_CUSTOMER_NAME,
                status=OrderStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                payment_method=event.payment_method,
                items_count=event.items_count,
                total=event.total,
                currency=event.currency,
                placed_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    def _update_status(self, order_id, status, updated_at=None):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(order_id)
        summary.status = status
        if updated_at:
            summary.updated_at = updated_at
        repo.add(summary)

    @on(OrderProcessing)
    def on_order_processing(self, event):
        self._update_status(event.order_id, OrderStatus.PROCESSING.value, event.started_at)

    @on(OrderShipped)
    def on_order_shipped(self, event):
        self._update_status(event.order_id, OrderStatus.SHIPPED.value, event.shipped_at)

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        self._update_status(event.order_id, OrderStatus.DELIVERED.value, event.delivered_at)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        self._update_status(event.order_id, OrderStatus.CANCELLED.value, event.cancelled_at)
