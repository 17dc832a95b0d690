"""Standard output sink — one flushed line per accepted message."""

from __future__ import annotations

import sys
import threading
from typing import TextIO


class StdoutSink:
    """Writes lines to standard output (or another text stream).

    Parameters
    ----------
    stream:
        Target stream.  When ``None``, ``sys.stdout`` is looked up at write
        time so that redirection after construction is honoured.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._lock = threading.Lock()
        self._lines_written = 0

    @property
    def sink_name(self) -> str:
        return "stdout"

    @property
    def lines_written(self) -> int:
        return self._lines_written

    def write_line(self, text: str) -> None:
        """Write ``text + "\\n"`` as a single write and flush it."""
        stream = self._stream if self._stream is not None else sys.stdout
        with self._lock:
            stream.write(text + "\n")
            stream.flush()
            self._lines_written += 1
