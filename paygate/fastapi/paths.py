"""
Path candidate reconciliation.

A request reaches the middleware with several notions of "its path": the raw
URL path, the path relative to the application (mounts and ``root_path``
stripped) and the template of the route that will handle it. Configured route
patterns may be written against any of them, so every candidate is tried.
"""

import re
from typing import Any, Iterable, List, Optional

_DYNAMIC_SEGMENT = re.compile(r"/(\*|\[)")
_TRAILING_SLASHES = re.compile(r"/+$")


def normalize_path_candidate(value: str) -> str:
    return value if value.startswith("/") else f"/{value}"


def normalize_prefix(value: str) -> str:
    if value == "/":
        return ""
    return _TRAILING_SLASHES.sub("", value)


def get_static_prefix(route_path: str) -> str:
    """Return the static parent prefix of a route pattern.

    ``/api/premium`` -> ``/api``, ``/api/items/[id]`` -> ``/api``,
    ``/premium`` -> ``""``.
    """
    match = _DYNAMIC_SEGMENT.search(route_path)
    static_path = route_path if match is None else route_path[: match.start()]
    normalized = _TRAILING_SLASHES.sub("", normalize_path_candidate(static_path))
    last_slash = normalized.rfind("/")

    if last_slash <= 0:
        return ""
    return normalized[:last_slash]


def _is_single_route_config(routes: Any) -> bool:
    if isinstance(routes, dict):
        return "accepts" in routes
    return hasattr(routes, "accepts")


def get_route_pattern_paths(routes: Any) -> List[str]:
    """Extract the path part of each configured route key.

    A single route config (one that carries ``accepts`` directly) protects
    every path, which is reported as ``["*"]``.
    """
    if not routes:
        return []

    if _is_single_route_config(routes):
        return ["*"]

    paths = []
    for pattern in routes:
        parts = pattern.split()
        raw_path = parts[1] if len(parts) > 1 else pattern
        paths.append(normalize_path_candidate(raw_path))
    return paths


def get_path_candidates(
    url_path: str,
    fallback: str,
    path: Optional[str] = None,
    route: Optional[str] = None,
) -> List[str]:
    candidates = [normalize_path_candidate(url_path), normalize_path_candidate(fallback)]
    if path:
        candidates.append(normalize_path_candidate(path))
    if route:
        candidates.append(normalize_path_candidate(route))
    return list(dict.fromkeys(candidates))


def expand_path_candidates(
    base_candidates: Iterable[str], route_patterns: Iterable[str]
) -> List[str]:
    """Add prefixed and prefix-stripped variants of each candidate.

    Handles apps mounted under a prefix that is (or is not) part of the
    configured route keys.
    """
    base_candidates = list(base_candidates)
    candidates = dict.fromkeys(base_candidates)
    prefixes = {}

    for pattern in route_patterns:
        if pattern == "*":
            continue
        prefix = normalize_prefix(get_static_prefix(pattern))
        if prefix:
            prefixes[prefix] = None

    for prefix in prefixes:
        for candidate in base_candidates:
            if candidate.startswith(prefix):
                stripped = candidate[len(prefix):] or "/"
                candidates[normalize_path_candidate(stripped)] = None
            else:
                candidates[normalize_path_candidate(f"{prefix}{candidate}")] = None

    return list(candidates)
