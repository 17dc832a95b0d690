"""FanoutSupervisor — one concurrent session per discovered endpoint.

The supervisor asks discovery for the endpoint list once, starts a
:class:`~bnlogs.core.session.ConnectionSession` task per address, and then
waits for an interrupt.  Sessions are fire-and-forget: they are not joined
or cancelled on shutdown, and a failing session never affects another one
or the supervisor.  Only a discovery failure is fatal.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any

from bnlogs.core.session import ConnectionSession
from bnlogs.discovery import DiscoveryError
from bnlogs.models.sessions import SessionOutcome
from bnlogs.sinks import StdoutSink

if TYPE_CHECKING:
    from bnlogs.bridge.transport import Connector
    from bnlogs.config import BnLogsConfig
    from bnlogs.discovery import Discovery
    from bnlogs.sinks import OutputSink

logger = logging.getLogger(__name__)

SessionFactory = Callable[..., Any]
ShutdownWaiter = Callable[[], Awaitable[object]]

DEFAULT_SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


async def wait_for_interrupt(
    signals: Iterable[signal.Signals] = DEFAULT_SHUTDOWN_SIGNALS,
) -> signal.Signals | None:
    """Block until one of *signals* is received.

    Handlers are installed on the running loop and removed again before
    returning.  Where the loop cannot install signal handlers, this waits
    forever and relies on ``KeyboardInterrupt`` ending ``asyncio.run``.

    Returns the signal that was received, or ``None`` if unknown.
    """
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    received: list[signal.Signals] = []
    installed: list[signal.Signals] = []

    def _on_signal(sig: signal.Signals) -> None:
        received.append(sig)
        stop.set()

    for sig in signals:
        try:
            loop.add_signal_handler(sig, _on_signal, sig)
        except (NotImplementedError, RuntimeError, ValueError):
            logger.debug("Cannot install handler for %s on this platform.", sig)
            continue
        installed.append(sig)

    try:
        await stop.wait()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)

    return received[0] if received else None


class FanoutSupervisor:
    """Spawns and forgets one session per discovered endpoint.

    Parameters
    ----------
    discovery:
        Source of endpoint addresses.  Called once per :meth:`run`.
    sink:
        Output sink shared by all sessions.  Defaults to :class:`StdoutSink`.
    connector:
        Transport connector handed to every session.
    config:
        Configuration handed to every session.
    session_factory:
        Builds a session; called as ``factory(address, stream_id, sink=...,
        connector=..., config=...)``.  Defaults to :class:`ConnectionSession`.
    """

    def __init__(
        self,
        discovery: Discovery,
        *,
        sink: OutputSink | None = None,
        connector: Connector | None = None,
        config: BnLogsConfig | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._discovery = discovery
        self._sink = sink or StdoutSink()
        self._connector = connector
        self._config = config
        self._session_factory = session_factory or ConnectionSession
        # Held only so the event loop does not drop running tasks; never joined.
        self._tasks: set[asyncio.Task[SessionOutcome | None]] = set()
        self._outcomes: list[SessionOutcome] = []

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def running_sessions(self) -> int:
        """Number of session tasks that have not finished yet."""
        return sum(1 for task in self._tasks if not task.done())

    @property
    def outcomes(self) -> list[SessionOutcome]:
        """Outcomes of sessions that have finished, in completion order."""
        return list(self._outcomes)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def discover(self) -> list[str]:
        """Fetch the endpoint list, normalising failures to ``DiscoveryError``."""
        try:
            addresses = await self._discovery.discover()
        except DiscoveryError:
            raise
        except Exception as exc:
            raise DiscoveryError(f"endpoint discovery failed: {exc}") from exc
        return list(addresses)

    async def run(
        self,
        stream_id: str,
        *,
        wait_for_shutdown: ShutdownWaiter | None = None,
    ) -> int:
        """Start one session per endpoint and wait for shutdown.

        Returns
        -------
        int
            Number of sessions started (``0`` when discovery found nothing).

        Raises
        ------
        DiscoveryError
            If the endpoint list could not be fetched.
        """
        addresses = await self.discover()
        logger.info("Fetched %d API boundary nodes.", len(addresses))
        logger.info("%s", addresses)

        if not addresses:
            logger.error("No API boundary nodes found. Exiting.")
            return 0

        for address in addresses:
            self._spawn(address, stream_id)

        logger.info("WebSocket clients started. Press Ctrl+C to exit.")
        await (wait_for_shutdown or wait_for_interrupt)()
        logger.info("Shutting down WebSocket clients.")
        return len(addresses)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _spawn(self, address: str, stream_id: str) -> None:
        session = self._session_factory(
            address,
            stream_id,
            sink=self._sink,
            connector=self._connector,
            config=self._config,
        )
        task = asyncio.create_task(self._run_session(session), name=f"bnlogs-session[{address}]")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_session(self, session: ConnectionSession) -> SessionOutcome | None:
        try:
            outcome = await session.run()
        except Exception:
            logger.exception("[%s] Session terminated unexpectedly.", session.address)
            return None
        self._outcomes.append(outcome)
        return outcome
