"""Order fulfillment and cancellation — commands and handler.

Orders are addressed by their public order number, which is what staff and
customers see.
"""

from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class MarkProcessing:
    """Signal that the warehouse has started picking and packing."""

    order_number = String(required=True, max_length=50)


@storefront.command(part_of="Order")
class MarkShipped:
    order_number = String(required=True, max_length=50)


@storefront.command(part_of="Order")
class MarkDelivered:
    order_number = String(required=True, max_length=50)


@storefront.command(part_of="Order")
class CancelOrder:
    order_number = String(required=True, max_length=50)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class FulfillOrderHandler:
    @handle(MarkProcessing)
    def mark_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_by_order_number(command.order_number)
        order.mark_processing()
        repo.add(order)

    @handle(MarkShipped)
    def mark_shipped(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_by_order_number(command.order_number)
        order.mark_shipped()
        repo.add(order)

    @handle(MarkDelivered)
    def mark_delivered(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_by_order_number(command.order_number)
        order.mark_delivered()
        repo.add(order)

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_by_order_number(command.order_number)
        order.cancel(reason=command.reason)
        repo.add(order)
