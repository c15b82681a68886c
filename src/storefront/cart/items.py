"""Cart item management — commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.domain import storefront
from storefront.shared.locks import cart_locks


@storefront.command(part_of="ShoppingCart")
class AddToCart:
    """Add a product to the cart with the catalogue data current at the time of the request.

    The caller is responsible for checking that the product exists, is active
    and has enough stock before sending this command.
    """

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    image = String(max_length=500)
    sku = String(max_length=100)


@storefront.command(part_of="ShoppingCart")
class UpdateCartItemQuantity:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)  # Zero or less removes the line


@storefront.command(part_of="ShoppingCart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.add_item(
            product_id=command.product_id,
            quantity=command.quantity,
            name=command.name,
            unit_price=command.unit_price,
            image=command.image,
            sku=command.sku,
        )
        repo.add(cart)

    @handle(UpdateCartItemQuantity)
    def update_cart_item_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        if cart.update_item_quantity(product_id=command.product_id, quantity=command.quantity):
            repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        if cart.remove_item(product_id=command.product_id):
            repo.add(cart)


def process_cart_command(command):
    """Run a command that targets one cart while holding that cart's lock.

    Two adds of the same product racing in one process must both land, so the
    whole load-mutate-save cycle runs under a per-cart lock.
    """
    with cart_locks.hold(f"cart:{command.cart_id}"):
        return current_domain.process(command, asynchronous=False)
