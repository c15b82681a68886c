"""Order aggregate (CQRS) — the immutable record of a completed checkout.

An order owns a frozen copy of the cart lines and the totals computed at
checkout. After placement only the fulfillment status and its timestamps
move; items, amounts, addresses and the payment method never change.

Status flow (fulfillment side):
    pending → processing → shipped → delivered
    pending/processing → cancelled (only while unpaid)

Payment status starts at pending and is moved by the payment side, which
lives outside this domain.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderShipped,
)
from storefront.shared.money import as_amount, quantize_amount, quantize_crypto, to_decimal


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    QRIS = "qris"
    BANK_TRANSFER = "bank_transfer"
    BITCOIN = "bitcoin"
    ETHEREUM = "ethereum"

    @property
    def crypto_symbol(self) -> str | None:
        """Ticker used to look up the exchange rate, or None for fiat methods."""
        return _CRYPTO_SYMBOLS.get(self)

    @property
    def is_crypto(self) -> bool:
        return self in _CRYPTO_SYMBOLS


_CRYPTO_SYMBOLS = {
    PaymentMethod.BITCOIN: "BTC",
    PaymentMethod.ETHEREUM: "ETH",
}

_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.PROCESSING}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class BillingAddress:
    """Who pays for the order and how to reach them, as entered at checkout."""

    first_name = String(required=True, max_length=255)
    last_name = String(required=True, max_length=255)
    email = String(required=True, max_length=255)
    phone = String(required=True, max_length=20)
    address_line_1 = String(required=True, max_length=255)
    address_line_2 = String(max_length=255)
    city = String(required=True, max_length=255)
    state = String(required=True, max_length=255)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=255)

    @invariant.post
    def email_must_look_valid(self):
        local_part, _, domain_part = (self.email or "").partition("@")
        if not local_part or "." not in domain_part or " " in self.email:
            raise ValidationError({"email": [f"Invalid email address: {self.email!r}"]})


@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order goes. Captured at checkout and never re-derived from the customer."""

    first_name = String(required=True, max_length=255)
    last_name = String(required=True, max_length=255)
    address_line_1 = String(required=True, max_length=255)
    address_line_2 = String(max_length=255)
    city = String(required=True, max_length=255)
    state = String(required=True, max_length=255)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=255)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A frozen copy of one cart line, taken when the order was placed."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image = String(max_length=500)
    sku = String(max_length=100)
    position = Integer(default=0)

    def snapshot(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "image": self.image,
            "sku": self.sku,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier()  # Empty for guest checkout
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(required=True, choices=PaymentMethod)
    subtotal = Float(required=True, min_value=0.0)
    tax_amount = Float(default=0.0)
    shipping_amount = Float(default=0.0)
    total = Float(required=True, min_value=0.0)
    currency = String(required=True, max_length=3)
    crypto_amount = Float()
    crypto_currency = String(max_length=10)
    crypto_rate = Float()
    billing_address = ValueObject(BillingAddress, required=True)
    shipping_address = ValueObject(ShippingAddress, required=True)
    items = HasMany(OrderItem)
    notes = Text()
    shipped_at = DateTime()
    delivered_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_sum_of_parts(self):
        expected = quantize_amount(
            to_decimal(self.subtotal) + to_decimal(self.tax_amount) + to_decimal(self.shipping_amount)
        )
        if quantize_amount(self.total) != expected:
            raise ValidationError({"total": ["Total must equal subtotal plus tax plus shipping"]})

    @invariant.post
    def crypto_fields_are_all_or_nothing(self):
        present = [f is not None for f in (self.crypto_amount, self.crypto_currency, self.crypto_rate)]
        if any(present) and not all(present):
            raise ValidationError({"crypto": ["Crypto amount, currency and rate must be set together"]})

    @invariant.post
    def crypto_fields_only_for_crypto_payments(self):
        if self.crypto_currency is None:
            return
        method = PaymentMethod(self.payment_method)
        if method.crypto_symbol != self.crypto_currency:
            raise ValidationError(
                {"crypto_currency": [f"{self.crypto_currency} does not match payment method {method.value}"]}
            )

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        payment_method,
        items_data,
        billing_address,
        shipping_address,
        pricing,
        crypto=None,
        user_id=None,
        notes=None,
    ):
        """Create a pending order from checkout data.

        Args:
            order_number: Unique, human-facing order reference.
            payment_method: A PaymentMethod or its string value.
            items_data: List of item snapshot dicts (product_id, name,
                        unit_price, quantity, image, sku). Copied, never kept.
            billing_address: Dict of BillingAddress fields.
            shipping_address: Dict of ShippingAddress fields.
            pricing: Dict with subtotal, tax_amount, shipping_amount,
                     total and currency.
            crypto: Optional (amount, currency, rate) tuple for crypto payments.
        """
        method = PaymentMethod(payment_method)
        crypto_amount, crypto_currency, crypto_rate = crypto or (None, None, None)
        now = datetime.now(UTC)

        order = cls(
            order_number=order_number,
            user_id=str(user_id) if user_id is not None else None,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=method.value,
            subtotal=as_amount(pricing["subtotal"]),
            tax_amount=as_amount(pricing.get("tax_amount", 0)),
            shipping_amount=as_amount(pricing.get("shipping_amount", 0)),
            total=as_amount(pricing["total"]),
            currency=pricing["currency"],
            crypto_amount=float(quantize_crypto(crypto_amount)) if crypto_amount is not None else None,
            crypto_currency=crypto_currency,
            crypto_rate=float(to_decimal(crypto_rate)) if crypto_rate is not None else None,
            billing_address=BillingAddress(**billing_address),
            shipping_address=ShippingAddress(**shipping_address),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for position, item in enumerate(items_data, start=1):
            order.add_items(
                OrderItem(
                    product_id=item["product_id"],
                    name=item["name"],
                    unit_price=item["unit_price"],
                    quantity=item["quantity"],
                    image=item.get("image"),
                    sku=item.get("sku"),
                    position=position,
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=order.user_id,
                customer_name=f"{order.billing_address.first_name} {order.billing_address.last_name}",
                payment_method=order.payment_method,
                items=order.items_json(),
                items_count=order.items_count,
                subtotal=order.subtotal,
                tax_amount=order.tax_amount,
                shipping_amount=order.shipping_amount,
                total=order.total,
                currency=order.currency,
                crypto_amount=order.crypto_amount,
                crypto_currency=order.crypto_currency,
                crypto_rate=order.crypto_rate,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived reads
    # -------------------------------------------------------------------
    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    @property
    def can_be_cancelled(self) -> bool:
        return OrderStatus(self.status) in _CANCELLABLE_STATES and not self.is_paid

    @property
    def items_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_guest_order(self) -> bool:
        return self.user_id is None

    def ordered_items(self) -> list[OrderItem]:
        return sorted(self.items, key=lambda item: item.position or 0)

    def items_json(self) -> str:
        return json.dumps([item.snapshot() for item in self.ordered_items()])

    # -------------------------------------------------------------------
    # Fulfillment transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_processing(self):
        self._assert_can_transition(OrderStatus.PROCESSING)
        now = datetime.now(UTC)
        self.status = OrderStatus.PROCESSING.value
        self.updated_at = now
        self.raise_(
            OrderProcessing(
                order_id=str(self.id),
                order_number=self.order_number,
                started_at=now,
            )
        )

    def mark_shipped(self):
        self._assert_can_transition(OrderStatus.SHIPPED)
        now = datetime.now(UTC)
        self.status = OrderStatus.SHIPPED.value
        self.shipped_at = now
        self.updated_at = now
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                order_number=self.order_number,
                shipped_at=now,
            )
        )

    def mark_delivered(self):
        self._assert_can_transition(OrderStatus.DELIVERED)
        now = datetime.now(UTC)
        self.status = OrderStatus.DELIVERED.value
        self.delivered_at = now
        self.updated_at = now
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                order_number=self.order_number,
                delivered_at=now,
            )
        )

    def cancel(self, reason=None):
        """Cancel the order. Only unpaid orders that have not shipped can be cancelled."""
        if not self.can_be_cancelled:
            raise ValidationError(
                {
                    "status": [
                        f"Order {self.order_number} cannot be cancelled "
                        f"(status {self.status}, payment {self.payment_status})"
                    ]
                }
            )

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                total=self.total,
                reason=reason,
                cancelled_at=now,
            )
        )
