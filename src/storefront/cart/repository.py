"""Repository for the ShoppingCart aggregate."""

from storefront.cart.cart import CartOwner, OwnerKind, ShoppingCart
from storefront.domain import storefront
from storefront.shared.exceptions import DuplicateCartError


@storefront.repository(part_of=ShoppingCart)
class CartRepository:
    def find_all_by_owner(self, owner: CartOwner) -> list[ShoppingCart]:
        if owner.kind == OwnerKind.USER:
            records = self._dao.query.filter(user_id=str(owner.user_id)).all().items
        else:
            records = self._dao.query.filter(session_id=owner.session_id).all().items
        return [self.get(record.id) for record in records]

    def find_by_owner(self, owner: CartOwner) -> ShoppingCart | None:
        """Return the owner's cart, or None if they have not started one yet."""
        carts = self.find_all_by_owner(owner)
        if len(carts) > 1:
            raise DuplicateCartError(owner.key, [str(cart.id) for cart in carts])
        return carts[0] if carts else None
