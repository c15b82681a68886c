"""FastAPI routes for the Storefront domain — carts, checkout, orders and dashboards.

Handlers are plain functions: FastAPI runs them in its thread pool, where the
per-cart locks serialize concurrent requests against the same cart.
"""

import json

from fastapi import APIRouter, Depends, HTTPException, Query
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddToCartRequest,
    CartIdResponse,
    CartResponse,
    CheckoutRequest,
    CustomerOrdersResponse,
    DailyStatsResponse,
    DashboardResponse,
    OrderNumberResponse,
    OrderResponse,
    RecentOrderResponse,
    ResolveCartRequest,
    StatusResponse,
    UpdateCartQuantityRequest,
)
from storefront.cart.cart import ShoppingCart
from storefront.cart.items import AddToCart, RemoveFromCart, UpdateCartItemQuantity, process_cart_command
from storefront.cart.management import ClearCart, owner_from, resolve_cart
from storefront.checkout.builder import EMPTY_CART_MESSAGE
from storefront.checkout.placement import PlaceOrder
from storefront.checkout.rates import StaticRateSource
from storefront.order.fulfillment import CancelOrder, MarkDelivered, MarkProcessing, MarkShipped
from storefront.order.order import Order, PaymentMethod
from storefront.projections.dashboard import customer_order_stats, daily_stats, dashboard_stats

FORBIDDEN_ORDER_MESSAGE = "This order belongs to another customer."
CUSTOMER_ORDER_HISTORY_LIMIT = 10

_rate_source = StaticRateSource()


def get_rate_source() -> StaticRateSource:
    return _rate_source


def _cart_response(cart: ShoppingCart) -> CartResponse:
    return CartResponse(
        cart_id=str(cart.id),
        user_id=str(cart.user_id) if cart.user_id is not None else None,
        session_id=cart.session_id,
        items=cart.snapshot_items(),
        items_count=cart.items_count,
        subtotal=cart.subtotal,
        tax_amount=cart.tax_amount,
        total=cart.total,
    )


def _load_cart(cart_id: str) -> ShoppingCart:
    return current_domain.repository_for(ShoppingCart).get(cart_id)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("/resolve", response_model=CartIdResponse)
def resolve(body: ResolveCartRequest) -> CartIdResponse:
    """Return the shopper's cart id, opening an empty cart on first visit."""
    cart_id = resolve_cart(owner_from(body.user_id, body.session_id))
    return CartIdResponse(cart_id=cart_id)


@cart_router.get("/{cart_id}", response_model=CartResponse)
def get_cart(cart_id: str) -> CartResponse:
    return _cart_response(_load_cart(cart_id))


@cart_router.post("/{cart_id}/items", response_model=CartResponse)
def add_cart_item(cart_id: str, body: AddToCartRequest) -> CartResponse:
    command = AddToCart(
        cart_id=cart_id,
        product_id=body.product_id,
        quantity=body.quantity,
        name=body.name,
        unit_price=body.unit_price,
        image=body.image,
        sku=body.sku,
    )
    process_cart_command(command)
    return _cart_response(_load_cart(cart_id))


@cart_router.delete("/{cart_id}/items", response_model=CartResponse)
def clear_cart(cart_id: str) -> CartResponse:
    """Empty the cart. The cart itself stays with its owner."""
    process_cart_command(ClearCart(cart_id=cart_id))
    return _cart_response(_load_cart(cart_id))


@cart_router.put("/{cart_id}/items/{product_id}", response_model=CartResponse)
def update_cart_item_quantity(cart_id: str, product_id: str, body: UpdateCartQuantityRequest) -> CartResponse:
    command = UpdateCartItemQuantity(
        cart_id=cart_id,
        product_id=product_id,
        quantity=body.quantity,
    )
    process_cart_command(command)
    return _cart_response(_load_cart(cart_id))


@cart_router.delete("/{cart_id}/items/{product_id}", response_model=CartResponse)
def remove_cart_item(cart_id: str, product_id: str) -> CartResponse:
    command = RemoveFromCart(
        cart_id=cart_id,
        product_id=product_id,
    )
    process_cart_command(command)
    return _cart_response(_load_cart(cart_id))


@cart_router.post("/{cart_id}/checkout", status_code=201, response_model=OrderNumberResponse)
def checkout_cart(
    cart_id: str,
    body: CheckoutRequest,
    rate_source: StaticRateSource = Depends(get_rate_source),
) -> OrderNumberResponse:
    """Place an order from the cart's contents and empty the cart."""
    if _load_cart(cart_id).is_empty:
        raise HTTPException(status_code=400, detail=EMPTY_CART_MESSAGE)

    crypto_rates = None
    if PaymentMethod(body.payment_method).is_crypto:
        crypto_rates = json.dumps(rate_source.current_rates())

    command = PlaceOrder(
        cart_id=cart_id,
        payment_method=body.payment_method,
        billing_address=body.billing.model_dump_json(),
        shipping_address=body.shipping.model_dump_json(),
        notes=body.notes,
        crypto_rates=crypto_rates,
    )
    order_number = process_cart_command(command)
    return OrderNumberResponse(order_number=order_number)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_number}", response_model=OrderResponse)
def get_order(order_number: str, user_id: str | None = None) -> OrderResponse:
    """Order confirmation. A registered user's order is only shown to that user; guest orders are open."""
    order = current_domain.repository_for(Order).get_by_order_number(order_number)
    if not order.is_guest_order and str(order.user_id) != user_id:
        raise HTTPException(status_code=403, detail=FORBIDDEN_ORDER_MESSAGE)

    return OrderResponse(
        order_number=order.order_number,
        user_id=str(order.user_id) if order.user_id is not None else None,
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        items=[item.snapshot() for item in order.ordered_items()],
        items_count=order.items_count,
        subtotal=order.subtotal,
        tax_amount=order.tax_amount,
        shipping_amount=order.shipping_amount,
        total=order.total,
        currency=order.currency,
        crypto_amount=order.crypto_amount,
        crypto_currency=order.crypto_currency,
        crypto_rate=order.crypto_rate,
        billing_address=order.billing_address.to_dict(),
        shipping_address=order.shipping_address.to_dict(),
        notes=order.notes,
        created_at=order.created_at,
    )


@order_router.put("/{order_number}/processing", response_model=StatusResponse)
def mark_processing(order_number: str) -> StatusResponse:
    current_domain.process(MarkProcessing(order_number=order_number), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_number}/shipped", response_model=StatusResponse)
def mark_shipped(order_number: str) -> StatusResponse:
    current_domain.process(MarkShipped(order_number=order_number), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_number}/delivered", response_model=StatusResponse)
def mark_delivered(order_number: str) -> StatusResponse:
    current_domain.process(MarkDelivered(order_number=order_number), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_number}/cancel", response_model=StatusResponse)
def cancel_order(order_number: str) -> StatusResponse:
    current_domain.process(CancelOrder(order_number=order_number), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Customer Router
# ---------------------------------------------------------------------------
customer_router = APIRouter(prefix="/users", tags=["customers"])


@customer_router.get("/{user_id}/orders", response_model=CustomerOrdersResponse)
def customer_orders(user_id: str) -> CustomerOrdersResponse:
    """The user's latest orders with their order counts and total spend."""
    orders = current_domain.repository_for(Order).for_user(user_id, limit=CUSTOMER_ORDER_HISTORY_LIMIT)
    return CustomerOrdersResponse(
        orders=[
            RecentOrderResponse(
                order_number=order.order_number,
                customer_name=f"{order.billing_address.first_name} {order.billing_address.last_name}",
                status=order.status,
                payment_method=order.payment_method,
                items_count=order.items_count,
                total=order.total,
                currency=order.currency,
                placed_at=order.created_at,
            )
            for order in orders
        ],
        stats=customer_order_stats(user_id),
    )


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.get("/dashboard", response_model=DashboardResponse)
def dashboard() -> DashboardResponse:
    return DashboardResponse(**dashboard_stats(limit=5))


@admin_router.get("/stats/daily", response_model=list[DailyStatsResponse])
def daily_order_stats(days: int = Query(default=30, ge=1, le=366)) -> list[DailyStatsResponse]:
    return [DailyStatsResponse(**day) for day in daily_stats(days)]
