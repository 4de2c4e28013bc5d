"""Helpers for reading protocol objects that may be models or plain dicts."""

from typing import Any, Dict, Optional


def get_field(obj: Any, *names: str) -> Any:
    """Return the first non-None field among ``names`` from a dict or object."""
    for name in names:
        if isinstance(obj, dict):
            value = obj.get(name)
        else:
            value = getattr(obj, name, None)
        if value is not None:
            return value
    return None


def to_dict(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, dict):
        return obj
    if hasattr(obj, "model_dump"):
        return obj.model_dump(by_alias=True, exclude_none=True)
    return dict(vars(obj))


def to_int(value: Any) -> Optional[int]:
    """Parse ints, decimal strings and 0x-prefixed hex strings; None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, str):
            value = value.strip()
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        return int(value)
    except (TypeError, ValueError):
        return None
