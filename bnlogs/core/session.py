"""ConnectionSession — one endpoint's full connection lifecycle.

A session builds its connection target, performs the WebSocket handshake,
and then races two event sources until the connection ends:

- the next inbound frame, which is sanitized and written to the output
  sink as one line;
- the next keepalive tick, which sends a ping frame.

Neither source has priority; whichever is ready first is handled first.
Every failure is local to the session: it is logged with the endpoint
address, the session moves to ``CLOSED`` and :meth:`ConnectionSession.run`
returns a :class:`SessionOutcome`.  Nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from bnlogs.bridge.transport import Connector, Transport, TransportError, WebSocketConnector
from bnlogs.config import get_config
from bnlogs.core.sanitizer import DecodeFailure, sanitize_payload
from bnlogs.core.ticker import KeepaliveTicker, Ticker, TickerFactory
from bnlogs.models.messages import InboundKind, InboundMessage
from bnlogs.models.sessions import (
    VALID_TRANSITIONS,
    CloseReason,
    SessionOutcome,
    SessionState,
)
from bnlogs.models.targets import TargetError, build_connection_target

if TYPE_CHECKING:
    from bnlogs.config import BnLogsConfig
    from bnlogs.sinks import OutputSink

logger = logging.getLogger(__name__)

# Constant keepalive ping body.
PING_PAYLOAD = b"\x01\x02\x03\x04"


class SessionStateError(RuntimeError):
    """Raised on an illegal session state transition."""


def _default_ticker_factory(period: float) -> Ticker:
    return KeepaliveTicker(period)


class ConnectionSession:
    """Manages one endpoint's connection from handshake to close.

    Parameters
    ----------
    address:
        The endpoint address this session owns.
    stream_id:
        The stream identifier (canister ID) to tail.
    sink:
        Shared output sink for sanitized lines.
    connector:
        Opens the transport.  Defaults to :class:`WebSocketConnector`.
    config:
        Supplies the target template, keepalive period and transport
        limits.  Defaults to ``bnlogs.config.get_config()``.
    ticker_factory:
        ``period -> ticker`` callable returning a :class:`Ticker`.
        Defaults to :class:`KeepaliveTicker`.
    """

    def __init__(
        self,
        address: str,
        stream_id: str,
        *,
        sink: OutputSink,
        connector: Connector | None = None,
        config: BnLogsConfig | None = None,
        ticker_factory: TickerFactory | None = None,
    ) -> None:
        if config is None:
            config = get_config()

        self._address = address
        self._stream_id = stream_id
        self._sink = sink
        self._connector = connector or WebSocketConnector()
        self._config = config
        self._ticker_factory = ticker_factory or _default_ticker_factory

        self._state = SessionState.CONNECTING
        self._outcome: SessionOutcome | None = None
        self._lines_written = 0
        self._decode_failures = 0
        self._ignored_messages = 0
        self._pings_sent = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def address(self) -> str:
        return self._address

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def outcome(self) -> SessionOutcome | None:
        """The outcome, once the session is ``CLOSED``."""
        return self._outcome

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self) -> SessionOutcome:
        """Run the session to completion and return its outcome.

        Can only be called once.
        """
        if self._state is not SessionState.CONNECTING or self._outcome is not None:
            raise SessionStateError(f"[{self._address}] session already ran")

        try:
            target = build_connection_target(
                self._address, self._stream_id, self._config.target_template
            )
        except TargetError as exc:
            logger.error("[%s] Failed to build connection target: %s", self._address, exc)
            return self._finish(CloseReason.TARGET_ERROR, str(exc))

        logger.info("[%s] Attempting to connect to: %s", self._address, target.url_str)

        try:
            transport = await self._connector(target, self._config.limits())
        except TransportError as exc:
            logger.error("[%s] Failed to connect: %s", self._address, exc)
            return self._finish(CloseReason.HANDSHAKE_ERROR, str(exc))

        logger.info(
            "[%s] WebSocket handshake successful! Response: %s",
            self._address,
            transport.response_status,
        )
        self._transition(SessionState.ACTIVE)

        try:
            reason, error = await self._pump(transport)
        finally:
            self._transition(SessionState.DRAINING)
            await self._release(transport)

        logger.info("[%s] Disconnected.", self._address)
        return self._finish(reason, error)

    # ------------------------------------------------------------------
    # Internal: event loop
    # ------------------------------------------------------------------

    async def _pump(self, transport: Transport) -> tuple[CloseReason, str]:
        """Race inbound frames against keepalive ticks until the connection ends."""
        ticker: Ticker = self._ticker_factory(self._config.ping_interval_seconds)
        receive_task: asyncio.Future[InboundMessage | None] | None = None
        tick_task: asyncio.Future[int] | None = None

        logger.info("[%s] Starting message and ping loop...", self._address)
        try:
            while True:
                if receive_task is None:
                    receive_task = asyncio.ensure_future(transport.receive())
                if tick_task is None:
                    tick_task = asyncio.ensure_future(ticker.tick())

                done, _ = await asyncio.wait(
                    {receive_task, tick_task}, return_when=asyncio.FIRST_COMPLETED
                )

                if receive_task in done:
                    finished, receive_task = receive_task, None
                    try:
                        message = finished.result()
                    except TransportError as exc:
                        logger.error("[%s] Error receiving message: %s", self._address, exc)
                        return CloseReason.READ_ERROR, str(exc)
                    if message is None:
                        logger.info("[%s] WebSocket connection closed by remote.", self._address)
                        return CloseReason.REMOTE_CLOSED, ""
                    self._dispatch(message)

                if tick_task in done:
                    finished, tick_task = tick_task, None
                    finished.result()
                    try:
                        await transport.send_ping(PING_PAYLOAD)
                    except TransportError as exc:
                        logger.error("[%s] Error sending PING: %s", self._address, exc)
                        return CloseReason.PING_ERROR, str(exc)
                    self._pings_sent += 1
                    logger.debug("[%s] Sent PING.", self._address)
        finally:
            ticker.stop()
            pending = [t for t in (receive_task, tick_task) if t is not None and not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    def _dispatch(self, message: InboundMessage) -> None:
        if message.kind is not InboundKind.BINARY:
            self._ignored_messages += 1
            logger.debug(
                "[%s] Received unexpected message: %s", self._address, message.describe()
            )
            return

        result = sanitize_payload(message.payload)
        if isinstance(result, DecodeFailure):
            self._decode_failures += 1
            logger.debug(
                "[%s] Received BINARY (%d bytes, not valid UTF-8): %s",
                self._address,
                result.byte_length,
                result.reason,
            )
            return

        self._sink.write_line(result.text)
        self._lines_written += 1

    async def _release(self, transport: Transport) -> None:
        try:
            await transport.close()
        except Exception as exc:
            logger.debug("[%s] Error while closing transport: %s", self._address, exc)

    # ------------------------------------------------------------------
    # Internal: state
    # ------------------------------------------------------------------

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in VALID_TRANSITIONS[self._state]:
            raise SessionStateError(
                f"[{self._address}] illegal transition {self._state.value} -> {new_state.value}"
            )
        logger.debug(
            "[%s] Session %s -> %s", self._address, self._state.value, new_state.value
        )
        self._state = new_state

    def _finish(self, reason: CloseReason, error: str) -> SessionOutcome:
        self._transition(SessionState.CLOSED)
        self._outcome = SessionOutcome(
            address=self._address,
            final_state=self._state,
            reason=reason,
            error=error,
            lines_written=self._lines_written,
            decode_failures=self._decode_failures,
            ignored_messages=self._ignored_messages,
            pings_sent=self._pings_sent,
        )
        return self._outcome

    def __repr__(self) -> str:
        return f"ConnectionSession(address={self._address!r}, state={self._state.value})"
