"""
Upto (usage-capped) payment tracking.
"""

from paygate.upto.store import (
    SESSION_CLOSED,
    SESSION_OPEN,
    SESSION_SETTLING,
    InMemoryUptoSessionStore,
    UptoSession,
    UptoSessionStore,
)
from paygate.upto.tracking import (
    TRACKING_ERROR_MESSAGES,
    TRACKING_ERROR_STATUS,
    TrackingResult,
    set_session_status,
    track_upto_payment,
)

__all__ = [
    "SESSION_CLOSED",
    "SESSION_OPEN",
    "SESSION_SETTLING",
    "InMemoryUptoSessionStore",
    "UptoSession",
    "UptoSessionStore",
    "TRACKING_ERROR_MESSAGES",
    "TRACKING_ERROR_STATUS",
    "TrackingResult",
    "set_session_status",
    "track_upto_payment",
]
