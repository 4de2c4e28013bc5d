"""
HTTP adapter that exposes a Starlette request to the x402 HTTP resource server.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import urljoin, urlsplit

from starlette.requests import Request
from starlette.routing import Match, Mount

from paygate.fastapi.paths import normalize_path_candidate

PAYMENT_SIGNATURE_HEADER = "payment-signature"
DEFAULT_PAYMENT_HEADER_ALIASES = ["x-payment"]

QueryValue = Union[str, List[str]]

_PATH_PARAM = re.compile(r"\{([^}:]+)(?::[^}]+)?\}")


def resolve_url(url: str):
    """Parse a request URL, resolving relative URLs against http://localhost."""
    if url.startswith("http://") or url.startswith("https://"):
        return urlsplit(url)
    return urlsplit(urljoin("http://localhost", url))


def app_relative_path(request: Request) -> str:
    """Get the request path with the mount/root prefix stripped."""
    path = request.scope.get("path", "") or request.url.path
    root_path = request.scope.get("root_path", "")
    if root_path and path.startswith(root_path):
        path = path[len(root_path):]
    return normalize_path_candidate(path) if path else ""


def to_route_pattern(template: str) -> str:
    """Rewrite ``/items/{item_id:int}`` to the ``/items/[item_id]`` pattern syntax."""
    return _PATH_PARAM.sub(lambda m: f"[{m.group(1)}]", template)


def _match_routes(routes: Sequence[Any], scope: Dict[str, Any], prefix: str) -> Optional[str]:
    for route in routes:
        try:
            match, child_scope = route.matches(scope)
        except (AttributeError, KeyError):
            continue
        if match != Match.FULL:
            continue

        route_path = getattr(route, "path", "")
        if isinstance(route, Mount):
            nested = _match_routes(route.routes, {**scope, **child_scope}, prefix + route_path)
            if nested:
                return nested
            if not route.routes:
                return prefix + route_path
            continue
        return prefix + route_path
    return None


def match_route_template(request: Request) -> Optional[str]:
    """Find the template of the route that will handle this request.

    The middleware runs before routing, so the app's routes are matched here
    the same way the router will match them.

    Returns:
        Route pattern (``[param]`` syntax) or None when nothing matches fully
    """
    app = request.scope.get("app")
    routes = getattr(getattr(app, "router", None), "routes", None)
    if not routes:
        return None

    template = _match_routes(routes, dict(request.scope), "")
    return to_route_pattern(template) if template else None


class StarletteRequestAdapter:
    """Implements the x402 ``HTTPAdapter`` interface over a Starlette request.

    ``payment-signature`` lookups fall back to the configured alias headers so
    that clients still sending the legacy ``X-PAYMENT`` header are accepted.
    """

    def __init__(
        self,
        request: Request,
        payment_header_aliases: Optional[Sequence[str]] = None,
        body: Any = None,
    ):
        self.request = request
        self.payment_header_aliases = list(
            DEFAULT_PAYMENT_HEADER_ALIASES
            if payment_header_aliases is None
            else payment_header_aliases
        )
        self.body = body
        self.url = resolve_url(str(request.url))
        self.path = app_relative_path(request) or self.url.path

        query_params: Dict[str, QueryValue] = {}
        for key, value in request.query_params.multi_items():
            existing = query_params.get(key)
            if existing is None:
                query_params[key] = value
            elif isinstance(existing, list):
                existing.append(value)
            else:
                query_params[key] = [existing, value]
        self.query_params = query_params

    def get_header(self, name: str) -> Optional[str]:
        direct = self.request.headers.get(name)
        if direct is not None:
            return direct

        if name.lower() == PAYMENT_SIGNATURE_HEADER:
            for alias in self.payment_header_aliases:
                alias_value = self.request.headers.get(alias)
                if alias_value is not None:
                    return alias_value

        return None

    def get_method(self) -> str:
        return self.request.method

    def get_path(self) -> str:
        return self.path

    def get_url(self) -> str:
        return str(self.request.url)

    def get_accept_header(self) -> str:
        return self.request.headers.get("accept", "")

    def get_user_agent(self) -> str:
        return self.request.headers.get("user-agent", "")

    def get_query_params(self) -> Dict[str, QueryValue]:
        return self.query_params

    def get_query_param(self, name: str) -> Optional[QueryValue]:
        return self.query_params.get(name)

    def get_body(self) -> Any:
        return self.body
