"""Mapping of domain errors to HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers as register_protean_exception_handlers

from storefront.shared.exceptions import DuplicateCartError, OrderNumberUnavailable

logger = structlog.get_logger(__name__)

CHECKOUT_FAILED_MESSAGE = "We could not complete your checkout. Your cart has been kept, please try again."


async def _order_number_unavailable(request: Request, exc: OrderNumberUnavailable):
    logger.error("Order number space exhausted", path=request.url.path, attempts=exc.attempts)
    return JSONResponse(status_code=503, content={"detail": CHECKOUT_FAILED_MESSAGE})


async def _duplicate_cart(request: Request, exc: DuplicateCartError):
    logger.error(
        "Found more than one cart for an owner",
        path=request.url.path,
        owner_key=exc.owner_key,
        cart_ids=exc.cart_ids,
    )
    return JSONResponse(status_code=500, content={"detail": "Cart data is inconsistent for this shopper"})


def register_exception_handlers(app: FastAPI) -> None:
    """Protean's handlers (validation → 400, not found → 404) plus storefront-specific ones."""
    register_protean_exception_handlers(app)
    app.add_exception_handler(OrderNumberUnavailable, _order_number_unavailable)
    app.add_exception_handler(DuplicateCartError, _duplicate_cart)
