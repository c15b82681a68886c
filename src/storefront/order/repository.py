"""Repository for the Order aggregate."""

from protean.exceptions import ObjectNotFoundError

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    def order_number_exists(self, order_number: str) -> bool:
        return bool(self._dao.query.filter(order_number=order_number).all().items)

    def get_by_order_number(self, order_number: str) -> Order:
        records = self._dao.query.filter(order_number=order_number).all().items
        if not records:
            raise ObjectNotFoundError(f"Order with order number {order_number} does not exist")
        return self.get(records[0].id)

    def for_user(self, user_id: str, limit: int = 10) -> list[Order]:
        """A registered user's orders, newest first."""
        records = self._dao.query.filter(user_id=user_id).order_by("-created_at").limit(limit).all().items
        return [self.get(record.id) for record in records]
