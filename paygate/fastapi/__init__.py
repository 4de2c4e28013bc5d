"""
x402 Payment Middleware for FastAPI

This package protects FastAPI/Starlette routes with x402 payments: requests are
checked before the handler runs and settled after it succeeds.
"""

from paygate.fastapi.adapter import StarletteRequestAdapter
from paygate.fastapi.middleware import (
    PaymentMiddleware,
    create_payment_middleware,
    resolve_http_server,
)
from paygate.fastapi.routes import PaidRoutes, create_paid_routes
from paygate.fastapi.types import (
    MiddlewareConfigError,
    PaymentMiddlewareConfig,
    PaymentState,
    UptoConfig,
)

__all__ = [
    "PaymentMiddleware",
    "create_payment_middleware",
    "resolve_http_server",
    "PaidRoutes",
    "create_paid_routes",
    "StarletteRequestAdapter",
    "MiddlewareConfigError",
    "PaymentMiddlewareConfig",
    "PaymentState",
    "UptoConfig",
]
