"""Session entity: a connected remote caller.

The transport owns real sessions; this one is what the in-memory
transport, the CLI and the tests hand to the dispatcher. Anything with
a ``kick(message)`` method and a stable hash can stand in for it.

State transitions:
    CONNECTED -> KICKED
              -> DISCONNECTED
"""
from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto


class SessionStatus(Enum):
    CONNECTED = auto()
    KICKED = auto()
    DISCONNECTED = auto()


class InvalidTransition(Exception):
    """Raised when a session state transition is not allowed."""


VALID_TRANSITIONS: dict[SessionStatus, set[SessionStatus]] = {
    SessionStatus.CONNECTED: {SessionStatus.KICKED, SessionStatus.DISCONNECTED},
    SessionStatus.KICKED: set(),
    SessionStatus.DISCONNECTED: set(),
}


@dataclass(eq=False, slots=True)
class Session:
    """A remote caller. Hashes by identity, so it can key cooldown entries."""
    session_id: uuid.UUID
    name: str
    status: SessionStatus = SessionStatus.CONNECTED
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: datetime | None = None
    kick_message: str | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def create(cls, name: str) -> Session:
        """Factory: a freshly connected session."""
        return cls(session_id=uuid.uuid4(), name=name)

    @property
    def connected(self) -> bool:
        return self.status is SessionStatus.CONNECTED

    def kick(self, message: str) -> bool:
        """Terminate the session with a message.

        Returns False if it had already ended; a caller can trip several
        violations at once and only the first kick counts.
        """
        with self._lock:
            if self.status is not SessionStatus.CONNECTED:
                return False
            self._transition_to(SessionStatus.KICKED)
            self.kick_message = message
            return True

    def disconnect(self) -> None:
        """CONNECTED -> DISCONNECTED. Raises InvalidTransition otherwise."""
        with self._lock:
            self._transition_to(SessionStatus.DISCONNECTED)

    def _transition_to(self, new_status: SessionStatus) -> None:
        allowed = VALID_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidTransition(
                f"Cannot transition from {self.status.name} to {new_status.name}"
            )
        self.status = new_status
        self.ended_at = datetime.now(timezone.utc)
