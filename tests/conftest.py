"""Shared test fixtures for bnlogs.

The fakes here stand in for the network: ``FakeTransport`` is fed frames
from the test, ``FakeConnector`` hands out transports (or handshake
failures) per address, and ``ManualTicker`` only ticks when told to.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import os
from collections.abc import Callable
from typing import Any

import pytest

from bnlogs.bridge.transport import TransportError, TransportLimits
from bnlogs.config import BnLogsConfig
from bnlogs.models.messages import InboundMessage
from bnlogs.models.targets import ConnectionTarget

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class MemorySink:
    """Collects written lines in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.changed = asyncio.Event()

    @property
    def sink_name(self) -> str:
        return "memory"

    def write_line(self, text: str) -> None:
        self.lines.append(text)
        self.changed.set()

    async def wait_for_lines(self, count: int, timeout: float = 2.0) -> list[str]:
        async def _wait() -> None:
            while len(self.lines) < count:
                self.changed.clear()
                await self.changed.wait()

        await asyncio.wait_for(_wait(), timeout=timeout)
        return list(self.lines)


class FakeTransport:
    """In-memory transport driven by the test."""

    def __init__(self, response_status: int = 101) -> None:
        self.inbound: asyncio.Queue[Any] = asyncio.Queue()
        self.pings: list[bytes] = []
        self.ping_error: Exception | None = None
        self.on_ping: Callable[[FakeTransport], None] | None = None
        self.closed = False
        self.response_status = response_status

    def feed_binary(self, payload: bytes) -> None:
        self.inbound.put_nowait(InboundMessage.binary(payload))

    def feed_text(self, text: str) -> None:
        self.inbound.put_nowait(InboundMessage.other(text))

    def feed_close(self) -> None:
        self.inbound.put_nowait(None)

    def feed_error(self, error: Exception) -> None:
        self.inbound.put_nowait(error)

    async def receive(self) -> InboundMessage | None:
        item = await self.inbound.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def send_ping(self, payload: bytes) -> None:
        if self.ping_error is not None:
            raise self.ping_error
        self.pings.append(payload)
        if self.on_ping is not None:
            self.on_ping(self)

    async def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Hands out a ``FakeTransport`` per address, or fails the handshake."""

    def __init__(self) -> None:
        self.transports: dict[str, FakeTransport] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[ConnectionTarget, TransportLimits]] = []

    def add(self, address: str) -> FakeTransport:
        transport = FakeTransport()
        self.transports[address] = transport
        return transport

    def fail(self, address: str, error: Exception | None = None) -> None:
        self.failures[address] = error or TransportError("connection refused")

    async def __call__(self, target: ConnectionTarget, limits: TransportLimits) -> FakeTransport:
        self.calls.append((target, limits))
        if target.address in self.failures:
            raise self.failures[target.address]
        return self.transports[target.address]


class ManualTicker:
    """Ticker that ticks only when ``fire()`` is called."""

    def __init__(self) -> None:
        self.period: float | None = None
        self.stopped = False
        self.ticks = 0
        self._pending: asyncio.Queue[None] = asyncio.Queue()

    def fire(self) -> None:
        self._pending.put_nowait(None)

    async def tick(self) -> int:
        await self._pending.get()
        if self.stopped:
            raise RuntimeError("ticker is stopped")
        self.ticks += 1
        return self.ticks

    def stop(self) -> None:
        self.stopped = True

    def factory(self, period: float) -> ManualTicker:
        self.period = period
        return self


class FakeClock:
    """Manually advanced monotonic clock with a matching ``sleep``."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


_WS_ACCEPT_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"


class SilentPeer:
    """Raw TCP server that accepts the WebSocket upgrade and never writes again.

    It answers no pings and sends no frames, like a stalled boundary node.
    Everything the client sends after the handshake is kept in ``received``.
    """

    def __init__(self) -> None:
        self.port: int | None = None
        self.received = bytearray()
        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        request = await reader.readuntil(b"\r\n\r\n")
        key = ""
        for line in request.decode("latin-1").split("\r\n"):
            name, _, value = line.partition(":")
            if name.strip().lower() == "sec-websocket-key":
                key = value.strip()
        accept = base64.b64encode(
            hashlib.sha1((key + _WS_ACCEPT_GUID).encode("ascii")).digest()
        ).decode("ascii")
        writer.write(
            (
                "HTTP/1.1 101 Switching Protocols\r\n"
                "Upgrade: websocket\r\n"
                "Connection: Upgrade\r\n"
                f"Sec-WebSocket-Accept: {accept}\r\n\r\n"
            ).encode("ascii")
        )
        await writer.drain()
        self._writers.append(writer)
        try:
            while True:
                chunk = await reader.read(4096)
                if not chunk:
                    break
                self.received.extend(chunk)
        except ConnectionError:
            pass

    async def wait_for_bytes(self, count: int, timeout: float = 2.0) -> bytes:
        async def _wait() -> None:
            while len(self.received) < count:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_wait(), timeout=timeout)
        return bytes(self.received)

    def hang_up(self) -> None:
        """Drop every accepted connection without a closing handshake."""
        for writer in self._writers:
            writer.close()

    async def __aenter__(self) -> SilentPeer:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.hang_up()
        assert self._server is not None
        self._server.close()
        await self._server.wait_closed()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(clean_env: None) -> BnLogsConfig:
    """Configuration with defaults, isolated from the caller's environment."""
    return BnLogsConfig(_env_file=None, endpoints=[], log_level="DEBUG")


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove any BNLOGS_* variables inherited from the shell."""
    for key in list(os.environ):
        if key.startswith("BNLOGS_"):
            monkeypatch.delenv(key, raising=False)
