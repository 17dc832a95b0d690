"""Connection targets — where a session connects to.

A target is composed from a discovered endpoint address, the caller's stream
identifier (the canister ID) and a fixed URL template.  Access control is by
URL alone, so the composed string must be a well-formed WebSocket URL before
any network activity happens.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, WebsocketUrl

_WS_URL_ADAPTER: TypeAdapter[WebsocketUrl] = TypeAdapter(WebsocketUrl)

# Characters that would silently move part of an address or identifier into
# another URL component instead of failing to parse.
_FORBIDDEN_ADDRESS_CHARS = frozenset("/?#@\\")
_FORBIDDEN_STREAM_ID_CHARS = frozenset("/?#\\")


class TargetError(ValueError):
    """Raised when an address and stream identifier do not compose to a URL."""


class ConnectionTarget(BaseModel):
    """A validated WebSocket URL for one endpoint's log stream."""

    model_config = ConfigDict(frozen=True)

    address: str
    stream_id: str
    url: WebsocketUrl

    @property
    def url_str(self) -> str:
        return str(self.url)

    @property
    def is_secure(self) -> bool:
        """``True`` for ``wss://`` targets."""
        return self.url.scheme == "wss"


def _check_component(name: str, value: str, forbidden: frozenset[str]) -> None:
    if not value:
        raise TargetError(f"{name} is empty")
    bad = sorted({ch for ch in value if ch in forbidden or ch.isspace() or not ch.isprintable()})
    if bad:
        raise TargetError(f"{name} {value!r} contains invalid characters: {bad!r}")


def build_connection_target(
    address: str,
    stream_id: str,
    template: str = "wss://{address}/logs/canister/{stream_id}",
) -> ConnectionTarget:
    """Compose and validate the connection target for *address*.

    Parameters
    ----------
    address:
        Endpoint address as returned by discovery (a hostname, optionally
        with a port).
    stream_id:
        The caller-supplied stream identifier.
    template:
        ``str.format`` template with ``{address}`` and ``{stream_id}`` fields.

    Raises
    ------
    TargetError
        If either component is empty or malformed, or the composed string
        is not a valid ``ws``/``wss`` URL.
    """
    _check_component("address", address, _FORBIDDEN_ADDRESS_CHARS)
    _check_component("stream identifier", stream_id, _FORBIDDEN_STREAM_ID_CHARS)

    try:
        url_str = template.format(address=address, stream_id=stream_id)
    except (KeyError, IndexError, ValueError) as exc:
        raise TargetError(f"invalid target template {template!r}: {exc}") from exc

    try:
        url = _WS_URL_ADAPTER.validate_python(url_str)
    except ValidationError as exc:
        message = exc.errors()[0].get("msg", str(exc)) if exc.errors() else str(exc)
        raise TargetError(f"{url_str} - {message}") from exc

    if not url.host:
        raise TargetError(f"{url_str} - missing host")

    return ConnectionTarget(address=address, stream_id=stream_id, url=url)
