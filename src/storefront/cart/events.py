"""Domain events for the ShoppingCart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="ShoppingCart")
class CartCreated:
    """An empty cart was opened for a registered user or a guest session."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier()
    session_id = String()
    created_at = DateTime(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the cart, or its quantity was increased by a repeat add."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)  # Quantity added by this call, not the new line quantity
    line_quantity = Integer(required=True)
    unit_price = Float(required=True)
    subtotal = Float(required=True)
    total = Float(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemQuantityUpdated:
    """The quantity of a cart line was set to a new absolute value."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    subtotal = Float(required=True)
    total = Float(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemRemoved:
    """A product line was dropped from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    subtotal = Float(required=True)
    total = Float(required=True)


@storefront.event(part_of="ShoppingCart")
class CartCleared:
    """All lines were removed and totals zeroed, typically after an order was placed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    cleared_at = DateTime(required=True)
