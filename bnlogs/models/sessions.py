"""Session lifecycle states and the outcome record a session returns.

A session moves ``CONNECTING -> ACTIVE -> DRAINING -> CLOSED``.  Failing to
build the target or to complete the handshake goes straight from
``CONNECTING`` to ``CLOSED``.  ``CLOSED`` is terminal: there is no
reconnection.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class SessionState(str, Enum):
    CONNECTING = "connecting"
    ACTIVE = "active"
    DRAINING = "draining"
    CLOSED = "closed"


VALID_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.CONNECTING: frozenset({SessionState.ACTIVE, SessionState.CLOSED}),
    SessionState.ACTIVE: frozenset({SessionState.DRAINING}),
    SessionState.DRAINING: frozenset({SessionState.CLOSED}),
    SessionState.CLOSED: frozenset(),
}


class CloseReason(str, Enum):
    """Why a session reached ``CLOSED``."""

    TARGET_ERROR = "target_error"
    HANDSHAKE_ERROR = "handshake_error"
    REMOTE_CLOSED = "remote_closed"
    READ_ERROR = "read_error"
    PING_ERROR = "ping_error"

    @property
    def is_error(self) -> bool:
        return self is not CloseReason.REMOTE_CLOSED


class SessionOutcome(BaseModel):
    """Summary of a finished session."""

    model_config = ConfigDict(frozen=True)

    address: str
    final_state: SessionState = SessionState.CLOSED
    reason: CloseReason
    error: str = ""
    lines_written: int = 0
    decode_failures: int = 0
    ignored_messages: int = 0
    pings_sent: int = 0

    @property
    def failed(self) -> bool:
        return self.reason.is_error
