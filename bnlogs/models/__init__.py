"""bnlogs data models — all Pydantic v2, all frozen (immutable)."""

from bnlogs.models.messages import InboundKind, InboundMessage
from bnlogs.models.sessions import (
    VALID_TRANSITIONS,
    CloseReason,
    SessionOutcome,
    SessionState,
)
from bnlogs.models.targets import ConnectionTarget, TargetError, build_connection_target

__all__ = [
    # targets
    "ConnectionTarget",
    "TargetError",
    "build_connection_target",
    # messages
    "InboundKind",
    "InboundMessage",
    # sessions
    "SessionState",
    "VALID_TRANSITIONS",
    "CloseReason",
    "SessionOutcome",
]
