"""
Usage tracking for verified upto payments.
"""

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from paygate.utils import get_field, to_dict, to_int
from paygate.upto.store import (
    SESSION_CLOSED,
    SESSION_OPEN,
    SESSION_SETTLING,
    UptoSession,
    UptoSessionStore,
)

logger = logging.getLogger(__name__)

INVALID_UPTO_PAYLOAD = "invalid_upto_payload"
UPTO_SESSION_CLOSED = "upto_session_closed"
UPTO_SESSION_SETTLING = "upto_session_settling"
UPTO_SESSION_EXPIRED = "upto_session_expired"
UPTO_CAP_EXHAUSTED = "upto_cap_exhausted"

TRACKING_ERROR_STATUS: Dict[str, int] = {
    INVALID_UPTO_PAYLOAD: 400,
    UPTO_SESSION_CLOSED: 402,
    UPTO_SESSION_SETTLING: 409,
    UPTO_SESSION_EXPIRED: 402,
    UPTO_CAP_EXHAUSTED: 402,
}

TRACKING_ERROR_MESSAGES: Dict[str, str] = {
    INVALID_UPTO_PAYLOAD: "Upto payment payload is missing a usable authorization.",
    UPTO_SESSION_CLOSED: "Upto session is closed. Sign a new authorization.",
    UPTO_SESSION_SETTLING: "Upto session is being settled. Retry shortly.",
    UPTO_SESSION_EXPIRED: "Upto authorization has expired. Sign a new authorization.",
    UPTO_CAP_EXHAUSTED: "Upto spending cap exhausted. Sign a new authorization.",
}

_tracking_lock = threading.Lock()


@dataclass
class TrackingResult:
    success: bool
    session_id: str = ""
    session: Optional[UptoSession] = None
    error: Optional[str] = None


def get_session_id(inner_payload: Dict[str, Any]) -> str:
    """Derive a stable session id from the signed payload."""
    canonical = json.dumps(inner_payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _failure(error: str, session_id: str = "", session: Optional[UptoSession] = None) -> TrackingResult:
    logger.info(f"[x402][upto] Tracking rejected: {error} (session {session_id or 'n/a'})")
    return TrackingResult(success=False, session_id=session_id, session=session, error=error)


def track_upto_payment(
    store: UptoSessionStore,
    payment_payload: Any,
    payment_requirements: Any,
    now: Optional[float] = None,
) -> TrackingResult:
    """Record one request against the spending cap of an upto authorization.

    Args:
        store: Session store
        payment_payload: Verified payment payload (model or dict)
        payment_requirements: Requirements the payload was verified against

    Returns:
        TrackingResult with the session id, or the tracking error key
    """
    now = time.time() if now is None else now

    inner = get_field(payment_payload, "payload")
    if not isinstance(inner, dict) or not inner:
        return _failure(INVALID_UPTO_PAYLOAD)

    authorization = get_field(inner, "authorization", "permit") or {}
    if not isinstance(authorization, dict):
        return _failure(INVALID_UPTO_PAYLOAD)

    extra = get_field(payment_requirements, "extra") or {}
    price = to_int(get_field(payment_requirements, "amount", "max_amount_required", "maxAmountRequired"))
    cap = to_int(get_field(authorization, "value", "maxAmount", "max_amount"))
    if cap is None:
        cap = to_int(get_field(extra, "maxAmount", "max_amount"))
    if cap is None:
        cap = price
    if price is None or cap is None or price < 0:
        return _failure(INVALID_UPTO_PAYLOAD)

    session_id = get_session_id(inner)
    expires_at = to_int(get_field(authorization, "validBefore", "deadline", "validUntil"))

    with _tracking_lock:
        session = store.get(session_id)
        if session is None:
            session = UptoSession(
                id=session_id,
                cap=cap,
                payer=str(get_field(authorization, "from", "owner") or get_field(inner, "payer") or ""),
                asset=str(get_field(payment_requirements, "asset") or ""),
                network=str(get_field(payment_requirements, "network") or ""),
                pay_to=str(get_field(payment_requirements, "pay_to", "payTo") or ""),
                expires_at=expires_at,
                created_at=now,
                payment_payload=to_dict(payment_payload),
                payment_requirements=to_dict(payment_requirements),
            )

        if session.status == SESSION_CLOSED:
            return _failure(UPTO_SESSION_CLOSED, session_id, session)
        if session.status == SESSION_SETTLING:
            return _failure(UPTO_SESSION_SETTLING, session_id, session)
        if session.expires_at is not None and now >= session.expires_at:
            return _failure(UPTO_SESSION_EXPIRED, session_id, session)
        if session.spent + price > session.cap:
            return _failure(UPTO_CAP_EXHAUSTED, session_id, session)

        session.spent += price
        session.count += 1
        session.last_used_at = now
        store.set(session)

    logger.debug(
        f"[x402][upto] Session {session_id} spent {session.spent}/{session.cap} "
        f"after {session.count} request(s)"
    )
    return TrackingResult(success=True, session_id=session_id, session=session)


def set_session_status(store: UptoSessionStore, session_id: str, status: str) -> Optional[UptoSession]:
    """Move a session to open, settling or closed (used by settlement sweepers)."""
    if status not in (SESSION_OPEN, SESSION_SETTLING, SESSION_CLOSED):
        raise ValueError(f"Unknown upto session status: {status}")
    with _tracking_lock:
        session = store.get(session_id)
        if session is None:
            return None
        session.status = status
        store.set(session)
        return session
