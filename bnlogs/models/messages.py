"""Inbound frames as seen by a session.

Only binary frames carry log content.  Everything else the transport hands
up (text frames, in practice) is tagged ``OTHER`` and discarded after a
debug log line.  Control frames (ping/pong/close) are answered by the
transport itself and never reach a session.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class InboundKind(str, Enum):
    """Tag for an inbound frame."""

    BINARY = "binary"
    OTHER = "other"


class InboundMessage(BaseModel):
    """One transient inbound frame."""

    model_config = ConfigDict(frozen=True)

    kind: InboundKind
    payload: bytes = b""
    text: str | None = None  # populated for text frames only

    @classmethod
    def binary(cls, payload: bytes) -> InboundMessage:
        return cls(kind=InboundKind.BINARY, payload=payload)

    @classmethod
    def other(cls, text: str | None = None) -> InboundMessage:
        return cls(kind=InboundKind.OTHER, text=text)

    @property
    def size(self) -> int:
        if self.kind is InboundKind.BINARY:
            return len(self.payload)
        return len(self.text.encode("utf-8")) if self.text is not None else 0

    def describe(self) -> str:
        """Short human-readable form for debug logging."""
        if self.kind is InboundKind.BINARY:
            return f"Binary({self.size} bytes)"
        preview = (self.text or "")[:64]
        return f"Text({self.size} bytes: {preview!r})"
