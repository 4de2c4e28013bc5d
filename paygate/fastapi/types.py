"""
Type definitions for the FastAPI payment middleware.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Union

from starlette.requests import Request

from paygate.server import ResourceServerConfig
from paygate.upto.store import UptoSessionStore
from paygate.upto.tracking import TrackingResult

PaywallConfigSource = Union[
    Any,
    Callable[[Request], Any],
    Callable[[Request], Awaitable[Any]],
]


class MiddlewareConfigError(ValueError):
    """Payment middleware was configured without what it needs to run."""


@dataclass
class UptoConfig:
    """Usage tracking for routes priced with the upto scheme."""

    store: UptoSessionStore
    auto_track: bool = True


@dataclass
class PaymentMiddlewareConfig:
    """Configuration for the payment middleware.

    Either pass a ready ``http_server``, or ``routes`` together with a
    ``resource_server`` or a ``facilitator_client`` to build one.
    """

    http_server: Any = None
    resource_server: Any = None
    facilitator_client: Any = None
    routes: Any = None
    server_config: Optional[ResourceServerConfig] = None
    # PaywallConfig, or a (sync or async) callable of the request returning one
    paywall_config: PaywallConfigSource = None
    paywall_provider: Any = None
    payment_header_aliases: Optional[List[str]] = None
    auto_settle: bool = True
    sync_facilitator_on_start: bool = True
    upto: Optional[UptoConfig] = None


@dataclass
class PaymentState:
    """Per-request payment outcome, stored on ``request.state.x402``."""

    result: Any
    tracking: Optional[TrackingResult] = None
