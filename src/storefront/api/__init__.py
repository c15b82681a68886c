"""Storefront domain API package."""

from storefront.api.errors import register_exception_handlers
from storefront.api.routes import admin_router, cart_router, customer_router, order_router

__all__ = ["admin_router", "cart_router", "customer_router", "order_router", "register_exception_handlers"]
