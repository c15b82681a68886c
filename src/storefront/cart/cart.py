"""Shopping Cart aggregate (CQRS) — per-owner cart that is emptied once an Order is placed.

The cart belongs to exactly one owner: a registered user or an anonymous
guest session. Each line captures the product's name, price, image and SKU
at the moment it was added; later catalogue changes never touch it. Totals
are derived from the lines and recalculated by every mutating method before
it returns.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.cart.events import (
    CartCleared,
    CartCreated,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
)
from storefront.domain import storefront
from storefront.shared.money import ZERO, as_amount, quantize_amount, to_decimal


class OwnerKind(Enum):
    USER = "User"
    GUEST = "Guest"


@storefront.value_object
class CartOwner:
    """Who a cart belongs to: either a registered user or a guest session, never both.

    Use ``CartOwner.for_user()`` or ``CartOwner.for_guest()`` rather than the
    constructor so the intent is explicit at the call site.
    """

    user_id = Identifier()
    session_id = String(max_length=255)

    @invariant.post
    def exactly_one_owner_key(self):
        has_user = self.user_id is not None and str(self.user_id) != ""
        has_session = bool(self.session_id)
        if has_user == has_session:
            raise ValidationError({"owner": ["A cart owner is either a user or a guest session, not both or neither"]})

    @classmethod
    def for_user(cls, user_id):
        return cls(user_id=str(user_id))

    @classmethod
    def for_guest(cls, session_id):
        return cls(session_id=session_id)

    @property
    def kind(self) -> OwnerKind:
        return OwnerKind.USER if self.user_id is not None else OwnerKind.GUEST

    @property
    def key(self) -> str:
        return str(self.user_id) if self.kind == OwnerKind.USER else self.session_id


@storefront.entity(part_of="ShoppingCart")
class CartItem:
    """One product line in a cart, with the catalogue data captured when it was added."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    name = String(required=True, max_length=255)
    image = String(max_length=500)
    sku = String(max_length=100)
    position = Integer(default=0)
    added_at = DateTime()

    def snapshot(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "image": self.image,
            "sku": self.sku,
        }


@storefront.aggregate
class ShoppingCart:
    user_id = Identifier()  # Set for registered users
    session_id = String(max_length=255)  # Set for guests
    items = HasMany(CartItem)
    subtotal = Float(default=0.0)
    tax_amount = Float(default=0.0)
    total = Float(default=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_have_exactly_one_owner(self):
        has_user = self.user_id is not None and str(self.user_id) != ""
        has_session = bool(self.session_id)
        if has_user == has_session:
            raise ValidationError({"owner": ["Cart must belong to exactly one user or guest session"]})

    @invariant.post
    def product_lines_must_be_unique(self):
        product_ids = [str(item.product_id) for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can appear only once in a cart"]})

    @invariant.post
    def totals_must_match_items(self):
        expected_subtotal = self._items_subtotal()
        if quantize_amount(self.subtotal) != expected_subtotal:
            raise ValidationError({"subtotal": ["Subtotal does not match the cart items"]})
        if quantize_amount(self.total) != expected_subtotal + quantize_amount(self.tax_amount):
            raise ValidationError({"total": ["Total must equal subtotal plus tax"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner: CartOwner):
        now = datetime.now(UTC)
        cart = cls(
            user_id=owner.user_id,
            session_id=owner.session_id,
            subtotal=0.0,
            tax_amount=0.0,
            total=0.0,
            created_at=now,
            updated_at=now,
        )
        cart.raise_(
            CartCreated(
                cart_id=str(cart.id),
                user_id=str(owner.user_id) if owner.user_id is not None else None,
                session_id=owner.session_id,
                created_at=now,
            )
        )
        return cart

    # -------------------------------------------------------------------
    # Read-side helpers
    # -------------------------------------------------------------------
    @property
    def owner(self) -> CartOwner:
        if self.user_id is not None:
            return CartOwner.for_user(self.user_id)
        return CartOwner.for_guest(self.session_id)

    @property
    def items_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def ordered_items(self) -> list[CartItem]:
        """Items in the order they were first added."""
        return sorted(self.items, key=lambda item: item.position or 0)

    def find_item(self, product_id) -> CartItem | None:
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def snapshot_items(self) -> list[dict]:
        """Detached copies of the cart lines, safe to hand to an Order."""
        return [item.snapshot() for item in self.ordered_items()]

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, name, unit_price, image=None, sku=None):
        """Add a product line, or increase the quantity of the existing line for that product.

        The name, price, image and SKU are only captured for a new line. Adding a
        product that is already in the cart keeps the originally captured values.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be a positive whole number"]})

        now = datetime.now(UTC)
        existing = self.find_item(product_id)

        with atomic_change(self):
            if existing:
                existing.quantity += quantity
                line = existing
            else:
                line = CartItem(
                    product_id=product_id,
                    quantity=quantity,
                    unit_price=as_amount(unit_price),
                    name=name,
                    image=image,
                    sku=sku,
                    position=self._next_position(),
                    added_at=now,
                )
                self.add_items(line)

            self._recalculate_totals()
            self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                quantity=quantity,
                line_quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=self.subtotal,
                total=self.total,
            )
        )

    def update_item_quantity(self, product_id, quantity) -> bool:
        """Set a line's quantity. Zero or less removes the line.

        Returns False, without changing anything, when the product is not in the cart.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError({"quantity": ["Quantity must be a whole number"]})
        if quantity <= 0:
            return self.remove_item(product_id)

        item = self.find_item(product_id)
        if item is None:
            return False

        previous_quantity = item.quantity
        now = datetime.now(UTC)

        with atomic_change(self):
            item.quantity = quantity
            self._recalculate_totals()
            self.updated_at = now

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                subtotal=self.subtotal,
                total=self.total,
            )
        )
        return True

    def remove_item(self, product_id) -> bool:
        """Drop a product line. Removing a product that is not in the cart is a no-op."""
        item = self.find_item(product_id)
        if item is None:
            return False

        now = datetime.now(UTC)

        with atomic_change(self):
            self.remove_items(item)
            self._recalculate_totals()
            self.updated_at = now

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                product_id=str(product_id),
                subtotal=self.subtotal,
                total=self.total,
            )
        )
        return True

    def clear(self):
        """Empty the cart and zero every total. The cart itself stays usable."""
        now = datetime.now(UTC)

        with atomic_change(self):
            for item in list(self.items):
                self.remove_items(item)
            self.subtotal = 0.0
            self.tax_amount = 0.0
            self.total = 0.0
            self.updated_at = now

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                cleared_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def _items_subtotal(self):
        return quantize_amount(sum((to_decimal(i.unit_price) * i.quantity for i in self.items), ZERO))

    def _tax_for(self, subtotal):  # noqa: ARG002
        # Tax hook: the store does not charge tax yet, so the current value is kept.
        return quantize_amount(self.tax_amount)

    def _recalculate_totals(self):
        subtotal = self._items_subtotal()
        tax_amount = self._tax_for(subtotal)
        self.subtotal = as_amount(subtotal)
        self.tax_amount = as_amount(tax_amount)
        self.total = as_amount(subtotal + tax_amount)

    def _next_position(self) -> int:
        return max((item.position or 0 for item in self.items), default=0) + 1
