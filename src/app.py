"""Storefront FastAPI application.

Web server that processes cart, checkout and order commands synchronously
via HTTP. Every request runs inside the storefront domain context.

Storage is in-memory and per process, so run a single worker.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --workers 1
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay ("production" turns debug off).
# Events are processed synchronously in every overlay: projectors fire in
# the same unit of work as the command that raised the event.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.domain import storefront
from storefront.utils.logging import add_context, clear_context, configure_logging

configure_logging()
storefront.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="E-commerce storefront — carts, checkout and orders",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context and bind request details to log lines."""
    add_context(method=request.method, path=request.url.path)
    try:
        with storefront.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import (  # noqa: E402
    admin_router,
    cart_router,
    customer_router,
    order_router,
    register_exception_handlers,
)

app.include_router(cart_router)
app.include_router(order_router)
app.include_router(customer_router)
app.include_router(admin_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": storefront.name},
        }
    )
