"""Transport bridge — wraps the ``websockets`` asyncio client for sessions.

Bridge boundary
---------------
``websockets.asyncio.client.connect`` returns a ``ClientConnection`` with a
rich API.  This module narrows it to the four things a session needs:
receive one frame, send one ping, report the handshake status, and close.
Sessions depend on :class:`Transport` and the :class:`Connector` protocol
only, so tests substitute in-memory fakes without touching the network.

Limits
------
``websockets`` enforces a single ``max_size`` that bounds both a whole
message and every individual frame.  The smaller of the configured
message and frame limits is used, so neither can be exceeded.  An
oversized frame makes the library close the connection with code 1009,
which surfaces here as a :class:`TransportError` from :meth:`Transport.receive`.

The library's own keepalive (``ping_interval``) is disabled: the session
drives keepalive pings from its own ticker.
"""

from __future__ import annotations

import logging
import ssl
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ConfigDict, field_validator
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from bnlogs.models.messages import InboundMessage

if TYPE_CHECKING:
    from bnlogs.models.targets import ConnectionTarget

logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """Raised when a transport-level operation fails."""


class TransportLimits(BaseModel):
    """Defensive limits applied to every connection."""

    model_config = ConfigDict(frozen=True)

    max_message_size: int = 5 * 1024
    max_frame_size: int = 5 * 1024
    open_timeout: float | None = 10.0

    @field_validator("max_message_size", "max_frame_size")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("size limits must be positive")
        return value

    @property
    def effective_max_size(self) -> int:
        """The single ``max_size`` handed to ``websockets``."""
        return min(self.max_message_size, self.max_frame_size)


# ---------------------------------------------------------------------------
# Transport class
# ---------------------------------------------------------------------------


class Transport:
    """One open WebSocket connection, reduced to what a session uses.

    Parameters
    ----------
    connection:
        An open ``websockets`` client connection.
    target:
        The target the connection was opened for (used in ``repr`` only).
    """

    def __init__(self, connection: ClientConnection, target: ConnectionTarget) -> None:
        self._connection = connection
        self._target = target
        self._closed = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def response_status(self) -> int | None:
        """HTTP status of the upgrade response (normally 101)."""
        response = getattr(self._connection, "response", None)
        return getattr(response, "status_code", None)

    @property
    def remote_address(self) -> Any:
        return getattr(self._connection, "remote_address", None)

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def receive(self) -> InboundMessage | None:
        """Wait for the next data frame.

        Returns
        -------
        InboundMessage | None
            The frame, or ``None`` once the peer has closed the connection
            cleanly.

        Raises
        ------
        TransportError
            If the connection failed, was closed abnormally, or the peer
            violated the protocol (including oversized frames).
        """
        try:
            data = await self._connection.recv()
        except ConnectionClosedOK:
            return None
        except ConnectionClosed as exc:
            raise TransportError(f"connection closed abnormally: {exc}") from exc
        except (WebSocketException, OSError) as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        if isinstance(data, bytes):
            return InboundMessage.binary(data)
        return InboundMessage.other(data)

    async def send_ping(self, payload: bytes) -> None:
        """Send a ping frame carrying *payload*.  The pong is not awaited.

        The same payload may be sent again before the previous pong has
        arrived, so a stalled peer keeps receiving one ping per tick.
        """
        # ``ping()`` refuses a payload that is still waiting for its pong.
        self._connection.pong_waiters.pop(payload, None)
        try:
            await self._connection.ping(payload)
        except (WebSocketException, OSError) as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

    async def close(self) -> None:
        """Close the connection.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._connection.close()

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Transport:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Transport(url={self._target.url_str!r}, state={state})"


# ---------------------------------------------------------------------------
# Connectors
# ---------------------------------------------------------------------------


class Connector(Protocol):
    """Opens a :class:`Transport` for a target."""

    async def __call__(
        self, target: ConnectionTarget, limits: TransportLimits
    ) -> Transport: ...


async def open_transport(
    target: ConnectionTarget,
    limits: TransportLimits,
    *,
    ssl_context: ssl.SSLContext | None = None,
) -> Transport:
    """Perform the WebSocket handshake with *target*.

    Raises
    ------
    TransportError
        If the connection cannot be established or the upgrade is rejected.
    """
    kwargs: dict[str, Any] = {
        "max_size": limits.effective_max_size,
        "open_timeout": limits.open_timeout,
        "ping_interval": None,
        "ping_timeout": None,
    }
    if target.is_secure and ssl_context is not None:
        kwargs["ssl"] = ssl_context

    try:
        connection = await connect(target.url_str, **kwargs)
    except (WebSocketException, OSError, TimeoutError) as exc:
        raise TransportError(str(exc) or type(exc).__name__) from exc

    return Transport(connection, target)


class WebSocketConnector:
    """Default :class:`Connector` backed by :func:`open_transport`."""

    def __init__(self, ssl_context: ssl.SSLContext | None = None) -> None:
        self._ssl_context = ssl_context

    async def __call__(self, target: ConnectionTarget, limits: TransportLimits) -> Transport:
        return await open_transport(target, limits, ssl_context=self._ssl_context)

    def __repr__(self) -> str:
        tls = "custom-tls" if self._ssl_context is not None else "default-tls"
        return f"WebSocketConnector({tls})"
