"""
Payment middleware for FastAPI/Starlette

This middleware runs the x402 payment flow around protected routes: payment
verification before the handler, then settlement (or upto usage tracking)
after it. Verification and settlement themselves are done by the x402 HTTP
resource server and its facilitator.
"""

import asyncio
import inspect
import json
import logging
from dataclasses import replace
from typing import Any, Callable, List, Optional

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from x402.http import HTTPProcessResult, HTTPRequestContext, x402HTTPResourceServer

from paygate.config import configure_debug_logging
from paygate.fastapi.adapter import (
    DEFAULT_PAYMENT_HEADER_ALIASES,
    PAYMENT_SIGNATURE_HEADER,
    StarletteRequestAdapter,
    match_route_template,
)
from paygate.fastapi.paths import (
    expand_path_candidates,
    get_path_candidates,
    get_route_pattern_paths,
)
from paygate.fastapi.types import (
    MiddlewareConfigError,
    PaymentMiddlewareConfig,
    PaymentState,
)
from paygate.server import create_resource_server
from paygate.upto.tracking import (
    TRACKING_ERROR_MESSAGES,
    TRACKING_ERROR_STATUS,
    track_upto_payment,
)

logger = logging.getLogger(__name__)

NO_PAYMENT_REQUIRED = "no-payment-required"
PAYMENT_ERROR = "payment-error"
PAYMENT_VERIFIED = "payment-verified"

UPTO_SCHEME = "upto"
UPTO_SESSION_HEADER = "x-upto-session-id"

_BODY_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def resolve_http_server(config: PaymentMiddlewareConfig) -> Any:
    """Get or build the x402 HTTP resource server for a middleware config.

    Raises:
        MiddlewareConfigError: If routes or a resource server source are missing
    """
    if config.http_server is not None:
        return config.http_server

    if not config.routes:
        raise MiddlewareConfigError("Payment middleware requires routes.")

    resource_server = config.resource_server
    if resource_server is None and config.facilitator_client is not None:
        resource_server = create_resource_server(config.facilitator_client, config.server_config)

    if resource_server is None:
        raise MiddlewareConfigError(
            "Payment middleware requires a resource_server or facilitator_client."
        )

    return x402HTTPResourceServer(resource_server, config.routes)


async def resolve_paywall_config(source: Any, request: Request) -> Any:
    if source is None:
        return None
    if callable(source):
        return await _maybe_await(source(request))
    return source


async def read_json_body(request: Request) -> Any:
    """Read a JSON request body for dynamic pricing; None when absent or not JSON."""
    if request.method not in _BODY_METHODS:
        return None
    if "json" not in request.headers.get("content-type", ""):
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def instructions_to_response(instructions: Any) -> Response:
    """Render x402 response instructions (status, headers, body) as a response."""
    status = _field(instructions, "status", 402)
    headers = dict(_field(instructions, "headers") or {})
    body = _field(instructions, "body")

    if _field(instructions, "is_html", False):
        return HTMLResponse(content=body or "", status_code=status, headers=headers)

    return JSONResponse(
        content=jsonable_encoder(body) if body is not None else {},
        status_code=status,
        headers=headers,
    )


class PaymentMiddleware(BaseHTTPMiddleware):
    """Middleware for x402 payment protection.

    Requests matching a configured route must carry a valid payment. The
    handler only runs once the payment is verified; settlement happens after
    a successful handler response and its headers are added to that response.
    """

    def __init__(self, app: Any, config: PaymentMiddlewareConfig):
        """Initialize payment middleware.

        Args:
            app: The ASGI application
            config: Payment middleware configuration

        Raises:
            MiddlewareConfigError: If the config cannot produce an HTTP server
        """
        super().__init__(app)
        self.config = config
        self.http_server = resolve_http_server(config)
        self.payment_header_aliases = (
            config.payment_header_aliases
            if config.payment_header_aliases is not None
            else list(DEFAULT_PAYMENT_HEADER_ALIASES)
        )
        self.auto_settle = config.auto_settle
        self.auto_track = config.upto.auto_track if config.upto else True
        self.route_patterns = get_route_pattern_paths(config.routes)

        self._initialized = not config.sync_facilitator_on_start
        self._init_lock = asyncio.Lock()

        if config.paywall_provider is not None:
            self.http_server.register_paywall_provider(config.paywall_provider)

        configure_debug_logging()
        logger.debug(
            f"[x402] initialized: routes={self.route_patterns}, "
            f"auto_settle={self.auto_settle}, auto_track={self.auto_track}"
        )

    async def _ensure_initialized(self) -> None:
        """Sync supported kinds from the facilitator once, before the first payment check."""
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            logger.info("[x402] Syncing resource server with facilitator")
            initialize = self.http_server.initialize
            if inspect.iscoroutinefunction(initialize):
                await initialize()
            else:
                # the sync facilitator fetch blocks, keep it off the event loop
                await run_in_threadpool(initialize)
            self._initialized = True

    def _path_candidates(self, request: Request, adapter: StarletteRequestAdapter) -> List[str]:
        route = match_route_template(request)
        logger.debug(
            f"[x402] request: {adapter.get_method()} url_path={request.url.path} "
            f"adapter_path={adapter.get_path()} route={route}"
        )
        return expand_path_candidates(
            get_path_candidates(request.url.path, adapter.get_path(), route=route),
            self.route_patterns,
        )

    def _context(self, adapter: StarletteRequestAdapter, path: str) -> HTTPRequestContext:
        return HTTPRequestContext(
            adapter=adapter,
            path=path,
            method=adapter.get_method(),
            payment_header=adapter.get_header(PAYMENT_SIGNATURE_HEADER),
        )

    def _requires_payment(self, adapter: StarletteRequestAdapter, path_candidates: List[str]) -> bool:
        """Match routes only; needs neither the facilitator nor the request body."""
        return any(
            self.http_server.requires_payment(self._context(adapter, candidate))
            for candidate in path_candidates
        )

    async def _process(
        self, request: Request, adapter: StarletteRequestAdapter, path_candidates: List[str]
    ) -> Any:
        paywall_config = await resolve_paywall_config(self.config.paywall_config, request)

        logger.debug(f"[x402] path candidates: {path_candidates}")

        result = None
        for candidate in path_candidates:
            attempt = await _maybe_await(
                self.http_server.process_http_request(
                    self._context(adapter, candidate), paywall_config
                )
            )
            logger.debug(f"[x402] process attempt: path={candidate} result={attempt.type}")
            result = attempt
            if attempt.type != NO_PAYMENT_REQUIRED:
                break

        return result

    def _track_upto(self, state: PaymentState) -> Optional[Response]:
        """Track an upto payment; return an error response when tracking rejects it."""
        result = state.result
        tracking = track_upto_payment(
            self.config.upto.store,
            result.payment_payload,
            result.payment_requirements,
        )
        state.tracking = tracking

        if tracking.success:
            return None

        logger.warning(f"[x402] Upto tracking failed: {tracking.error}")
        return JSONResponse(
            status_code=TRACKING_ERROR_STATUS[tracking.error],
            content={
                "error": tracking.error,
                "message": TRACKING_ERROR_MESSAGES[tracking.error],
                "sessionId": tracking.session_id,
            },
        )

    async def _settle(self, state: PaymentState, response: Response) -> None:
        result = state.result
        settlement = await _maybe_await(
            self.http_server.process_settlement(
                result.payment_payload,
                result.payment_requirements,
            )
        )

        if settlement.success:
            for name, value in (settlement.headers or {}).items():
                response.headers[name] = value
            logger.info("[x402] Payment settled")
        else:
            logger.warning(
                f"[x402] Settlement failed: {getattr(settlement, 'error_reason', None)}"
            )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request through the payment middleware.

        Args:
            request: FastAPI/Starlette request
            call_next: Next middleware/handler in chain

        Returns:
            Response (either the payment error or the handler's response)
        """
        adapter = StarletteRequestAdapter(request, self.payment_header_aliases)
        path_candidates = self._path_candidates(request, adapter)

        if not self._requires_payment(adapter, path_candidates):
            request.state.x402 = PaymentState(result=HTTPProcessResult(type=NO_PAYMENT_REQUIRED))
            return await call_next(request)

        await self._ensure_initialized()

        adapter.body = await read_json_body(request)
        result = await self._process(request, adapter, path_candidates)

        state = PaymentState(result=result)
        request.state.x402 = state

        if result is None or result.type == NO_PAYMENT_REQUIRED:
            return await call_next(request)

        if result.type == PAYMENT_ERROR:
            logger.info(f"[x402] Payment required for {request.method} {request.url.path}")
            return instructions_to_response(result.response)

        is_upto = _field(result.payment_requirements, "scheme") == UPTO_SCHEME
        if is_upto and self.config.upto and self.auto_track:
            error_response = self._track_upto(state)
            if error_response is not None:
                return error_response

        response = await call_next(request)

        if result.type != PAYMENT_VERIFIED:
            return response

        if is_upto:
            if state.tracking and state.tracking.success:
                response.headers[UPTO_SESSION_HEADER] = state.tracking.session_id
            return response

        if not self.auto_settle:
            return response

        if response.status_code >= 400:
            logger.info(
                f"[x402] Handler returned {response.status_code}, skipping settlement"
            )
            return response

        await self._settle(state, response)
        return response


def create_payment_middleware(config: PaymentMiddlewareConfig) -> Callable[[FastAPI], FastAPI]:
    """Create an installer that adds the payment middleware to an app.

    The HTTP server is resolved immediately so configuration errors surface
    at startup instead of on the first request.

    Example:
        ```python
        from paygate.fastapi import PaymentMiddlewareConfig, create_payment_middleware

        routes = {
            "GET /api/premium": {
                "accepts": {
                    "scheme": "exact",
                    "network": "starknet:sepolia",
                    "payTo": "0x...",
                    "price": "$0.01",
                }
            }
        }

        install = create_payment_middleware(
            PaymentMiddlewareConfig(facilitator_client=facilitator_client, routes=routes)
        )
        install(app)
        ```
    """
    resolved = replace(config, http_server=resolve_http_server(config))

    def install(app: FastAPI) -> FastAPI:
        app.add_middleware(PaymentMiddleware, config=resolved)
        return app

    return install
