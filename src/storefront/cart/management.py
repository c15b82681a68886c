"""Cart management — resolving an owner's cart and clearing it."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import CartOwner, ShoppingCart
from storefront.domain import storefront
from storefront.shared.locks import cart_locks

logger = structlog.get_logger(__name__)


@storefront.command(part_of="ShoppingCart")
class ResolveCart:
    """Find the cart for a user or guest session, opening an empty one if none exists."""

    user_id = Identifier()  # Registered user
    session_id = String(max_length=255)  # Guest session token


@storefront.command(part_of="ShoppingCart")
class ClearCart:
    cart_id = Identifier(required=True)


def owner_from(user_id=None, session_id=None) -> CartOwner:
    """Build the cart owner from a request's identity. A user id wins over the session."""
    if user_id is not None and str(user_id) != "":
        return CartOwner.for_user(user_id)
    if session_id:
        return CartOwner.for_guest(session_id)
    raise ValidationError({"owner": ["A user id or a guest session id is required"]})


def resolve_cart(owner: CartOwner) -> str:
    """Find-or-create the owner's cart, serialized per owner so one owner never gets two carts."""
    with cart_locks.hold(f"owner:{owner.kind.value}:{owner.key}"):
        return current_domain.process(
            ResolveCart(user_id=owner.user_id, session_id=owner.session_id),
            asynchronous=False,
        )


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(ResolveCart)
    def resolve_cart(self, command):
        owner = owner_from(command.user_id, command.session_id)
        repo = current_domain.repository_for(ShoppingCart)

        cart = repo.find_by_owner(owner)
        if cart is not None:
            return str(cart.id)

        cart = ShoppingCart.create(owner)
        repo.add(cart)
        logger.info("Opened new cart", cart_id=str(cart.id), owner_kind=owner.kind.value)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.clear()
        repo.add(cart)
