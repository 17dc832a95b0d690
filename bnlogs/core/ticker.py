"""Keepalive ticker — a fixed-period async tick source, one per session.

The first tick fires one full period after the ticker is created; nothing
fires at time zero.  Deadlines that pass while the consumer is busy are not
queued up: at most one overdue tick is delivered, and the schedule is then
re-aligned to the next period boundary after "now".
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_PING_INTERVAL_SECONDS = 10.0


@runtime_checkable
class Ticker(Protocol):
    """What a session needs from its keepalive tick source."""

    async def tick(self) -> int:
        """Wait for the next tick and return its number."""
        ...

    def stop(self) -> None:
        """Stop ticking.  Pending and later ``tick()`` calls must not deliver."""
        ...


TickerFactory = Callable[[float], Ticker]


def _loop_clock() -> float:
    return asyncio.get_running_loop().time()


class KeepaliveTicker:
    """Fixed-period tick source with skip-on-miss behaviour.

    Parameters
    ----------
    period:
        Seconds between ticks.  Must be positive.
    clock:
        Monotonic time source.  Defaults to the running event loop's clock.
    sleep:
        Coroutine function used to wait.  Defaults to ``asyncio.sleep``.
    """

    def __init__(
        self,
        period: float = DEFAULT_PING_INTERVAL_SECONDS,
        *,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[object]] | None = None,
    ) -> None:
        if period <= 0:
            raise ValueError(f"period must be positive, got {period!r}")
        self._period = float(period)
        self._clock = clock or _loop_clock
        self._sleep = sleep or asyncio.sleep
        self._next_deadline = self._clock() + self._period
        self._ticks = 0
        self._skipped = 0
        self._stopped = False

    @property
    def period(self) -> float:
        return self._period

    @property
    def ticks(self) -> int:
        """Number of ticks delivered so far."""
        return self._ticks

    @property
    def skipped(self) -> int:
        """Number of deadlines dropped because the consumer fell behind."""
        return self._skipped

    @property
    def next_deadline(self) -> float:
        return self._next_deadline

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        """Stop the ticker.  Further :meth:`tick` calls raise ``RuntimeError``."""
        self._stopped = True

    async def tick(self) -> int:
        """Wait for the next deadline and return the tick number (1-based)."""
        if self._stopped:
            raise RuntimeError("ticker is stopped")

        delay = self._next_deadline - self._clock()
        if delay > 0:
            await self._sleep(delay)
        if self._stopped:
            raise RuntimeError("ticker is stopped")

        now = self._clock()
        self._next_deadline += self._period
        if self._next_deadline <= now:
            missed = int((now - self._next_deadline) // self._period) + 1
            self._skipped += missed
            self._next_deadline += missed * self._period
            logger.debug("Keepalive ticker fell behind; skipped %d tick(s).", missed)

        self._ticks += 1
        return self._ticks
