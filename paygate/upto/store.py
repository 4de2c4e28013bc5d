"""
Session storage for upto payments.

An upto payment authorizes a spending cap once; each paid request then draws
from that cap until it is exhausted, closed or settled.
"""

import threading
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

SESSION_OPEN = "open"
SESSION_SETTLING = "settling"
SESSION_CLOSED = "closed"


@dataclass
class UptoSession:
    """Running usage of one upto authorization."""

    id: str
    cap: int
    payer: str = ""
    asset: str = ""
    network: str = ""
    pay_to: str = ""
    spent: int = 0
    count: int = 0
    status: str = SESSION_OPEN
    expires_at: Optional[int] = None
    created_at: float = 0.0
    last_used_at: float = 0.0
    # raw payload/requirements kept so the session can be settled later
    payment_payload: Dict = field(default_factory=dict)
    payment_requirements: Dict = field(default_factory=dict)

    @property
    def remaining(self) -> int:
        return max(self.cap - self.spent, 0)


class UptoSessionStore(Protocol):
    def get(self, session_id: str) -> Optional[UptoSession]: ...

    def set(self, session: UptoSession) -> None: ...

    def delete(self, session_id: str) -> bool: ...

    def list(self) -> List[UptoSession]: ...


class InMemoryUptoSessionStore:
    """In-memory session store.

    Data is lost when the process ends. Suitable for a single worker; use a
    shared store when running several.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, UptoSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[UptoSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            return deepcopy(session) if session else None

    def set(self, session: UptoSession) -> None:
        with self._lock:
            self._sessions[session.id] = deepcopy(session)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def list(self) -> List[UptoSession]:
        with self._lock:
            return [deepcopy(session) for session in self._sessions.values()]
