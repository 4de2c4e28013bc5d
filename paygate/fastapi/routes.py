"""
Paid route registration.

Declares the price of an endpoint next to the endpoint itself instead of in a
separate routes map:

    paid = create_paid_routes(app, "/api", middleware=PaymentMiddlewareConfig(...))

    @paid.get("/premium", payment={"accepts": [...], "description": "Premium"})
    async def premium():
        ...

    paid.install()
"""

from dataclasses import replace
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, FastAPI

from paygate.fastapi.middleware import PaymentMiddleware, resolve_http_server
from paygate.fastapi.paths import normalize_path_candidate, normalize_prefix
from paygate.fastapi.types import MiddlewareConfigError, PaymentMiddlewareConfig


class PaidRoutes:
    """Collects endpoints and their payment configs under a base path."""

    def __init__(
        self,
        base_path: str = "",
        middleware: Optional[PaymentMiddlewareConfig] = None,
        router: Optional[APIRouter] = None,
        app: Optional[FastAPI] = None,
    ):
        self.app = app
        self.base_path = normalize_prefix(base_path)
        self.middleware = middleware or PaymentMiddlewareConfig()
        self.router = router or APIRouter()
        self.routes: Dict[str, Any] = {}
        self._installed = False

    def route_key(self, method: str, path: str) -> str:
        return f"{method.upper()} {self.base_path}{normalize_path_candidate(path)}"

    def add(self, method: str, path: str, payment: Any = None, **kwargs: Any) -> Callable:
        """Register an endpoint decorator; record its payment config when given."""
        if payment is not None:
            self.routes[self.route_key(method, path)] = payment
        return self.router.api_route(path, methods=[method.upper()], **kwargs)

    def get(self, path: str, *, payment: Any = None, **kwargs: Any) -> Callable:
        return self.add("GET", path, payment, **kwargs)

    def post(self, path: str, *, payment: Any = None, **kwargs: Any) -> Callable:
        return self.add("POST", path, payment, **kwargs)

    def put(self, path: str, *, payment: Any = None, **kwargs: Any) -> Callable:
        return self.add("PUT", path, payment, **kwargs)

    def patch(self, path: str, *, payment: Any = None, **kwargs: Any) -> Callable:
        return self.add("PATCH", path, payment, **kwargs)

    def delete(self, path: str, *, payment: Any = None, **kwargs: Any) -> Callable:
        return self.add("DELETE", path, payment, **kwargs)

    def middleware_config(self) -> PaymentMiddlewareConfig:
        """Middleware config with the collected routes merged over any configured ones."""
        configured = self.middleware.routes or {}
        if configured and "accepts" in configured:
            raise MiddlewareConfigError(
                "Paid routes cannot be combined with a single catch-all route config."
            )
        return replace(self.middleware, routes={**configured, **self.routes})

    def install(self, app: Optional[FastAPI] = None) -> FastAPI:
        """Include the router and add the payment middleware to the app.

        Raises:
            MiddlewareConfigError: If the middleware config cannot produce an HTTP server
        """
        app = app if app is not None else self.app
        if app is None:
            raise MiddlewareConfigError("No app to install paid routes on.")
        if self._installed:
            return app
        config = self.middleware_config()
        config = replace(config, http_server=resolve_http_server(config))
        app.include_router(self.router, prefix=self.base_path)
        app.add_middleware(PaymentMiddleware, config=config)
        self._installed = True
        return app


def create_paid_routes(
    app: Optional[FastAPI] = None,
    base_path: str = "",
    middleware: Optional[PaymentMiddlewareConfig] = None,
) -> PaidRoutes:
    """Create a PaidRoutes collection bound to an app.

    Nothing is added to the app until ``install()`` is called, after the
    endpoints are declared.
    """
    return PaidRoutes(base_path=base_path, middleware=middleware, app=app)
