"""Output sink protocol for sanitized log lines.

Every session writes through the same sink.  A sink must make each
``write_line`` call atomic: two sessions' lines may interleave with each
other, but never within a line.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from bnlogs.sinks.stdout import StdoutSink


@runtime_checkable
class OutputSink(Protocol):
    """Protocol that every output sink must implement.

    Attributes
    ----------
    sink_name : str
        A human-readable identifier for this sink (e.g. ``"stdout"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the name of this sink."""
        ...

    def write_line(self, text: str) -> None:
        """Write *text* followed by a line terminator, then flush.

        Parameters
        ----------
        text:
            Already sanitized text.  May be empty, which still produces an
            (empty) line.
        """
        ...


__all__ = ["OutputSink", "StdoutSink"]
