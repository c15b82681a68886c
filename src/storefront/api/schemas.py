"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    address_line_1: str = Field(max_length=255)
    address_line_2: str | None = Field(default=None, max_length=255)
    city: str = Field(max_length=255)
    state: str = Field(max_length=255)
    postal_code: str = Field(max_length=20)
    country: str = Field(max_length=255)


class BillingAddressSchema(ShippingAddressSchema):
    email: str = Field(max_length=255)
    phone: str = Field(max_length=20)


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class ResolveCartRequest(BaseModel):
    user_id: str | None = None
    session_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": None,
                    "session_id": "sess-7d41c2",
                }
            ]
        }
    }


class AddToCartRequest(BaseModel):
    """Product data captured by the catalogue at the time of the request."""

    product_id: str
    quantity: int = Field(ge=1, default=1)
    name: str = Field(max_length=255)
    unit_price: float = Field(ge=0)
    image: str | None = Field(default=None, max_length=500)
    sku: str | None = Field(default=None, max_length=100)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int  # Zero or less removes the line


class CheckoutRequest(BaseModel):
    payment_method: Literal["qris", "bank_transfer", "bitcoin", "ethereum"]
    billing: BillingAddressSchema
    shipping: ShippingAddressSchema
    notes: str | None = Field(default=None, max_length=1000)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "payment_method": "bank_transfer",
                    "billing": {
                        "first_name": "Siti",
                        "last_name": "Rahma",
                        "email": "siti@example.com",
                        "phone": "+62811000111",
                        "address_line_1": "Jl. Merdeka 10",
                        "city": "Bandung",
                        "state": "Jawa Barat",
                        "postal_code": "40115",
                        "country": "ID",
                    },
                    "shipping": {
                        "first_name": "Siti",
                        "last_name": "Rahma",
                        "address_line_1": "Jl. Merdeka 10",
                        "city": "Bandung",
                        "state": "Jawa Barat",
                        "postal_code": "40115",
                        "country": "ID",
                    },
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class CartItemResponse(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int
    image: str | None = None
    sku: str | None = None


class CartResponse(BaseModel):
    cart_id: str
    user_id: str | None = None
    session_id: str | None = None
    items: list[CartItemResponse]
    items_count: int
    subtotal: float
    tax_amount: float
    total: float


class OrderNumberResponse(BaseModel):
    order_number: str


class OrderResponse(BaseModel):
    order_number: str
    user_id: str | None = None
    status: str
    payment_status: str
    payment_method: str
    items: list[CartItemResponse]
    items_count: int
    subtotal: float
    tax_amount: float
    shipping_amount: float
    total: float
    currency: str
    crypto_amount: float | None = None
    crypto_currency: str | None = None
    crypto_rate: float | None = None
    billing_address: BillingAddressSchema
    shipping_address: ShippingAddressSchema
    notes: str | None = None
    created_at: datetime | None = None


class RecentOrderResponse(BaseModel):
    order_number: str
    customer_name: str | None = None
    status: str
    payment_method: str | None = None
    items_count: int
    total: float
    currency: str | None = None
    placed_at: datetime | None = None


class DashboardResponse(BaseModel):
    total_orders: int
    total_revenue: float
    recent_orders: list[RecentOrderResponse]


class StatusResponse(BaseModel):
    status: str = "ok"


class DailyStatsResponse(BaseModel):
    date: str
    orders_placed: int
    orders_cancelled: int
    total_revenue: float


class CustomerOrderStatsResponse(BaseModel):
    total: int
    pending: int
    completed: int
    total_spent: float


class CustomerOrdersResponse(BaseModel):
    orders: list[RecentOrderResponse]
    stats: CustomerOrderStatsResponse
