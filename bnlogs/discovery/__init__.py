"""Endpoint discovery — resolves where the log stream can be tailed from.

Discovery is an external collaborator: the supervisor calls it once at
startup and treats the result as an ordered list of opaque addresses.

Modules
-------
configured
    ``ConfiguredDiscovery``, which returns a statically configured list
    (``BNLOGS_ENDPOINTS``).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from bnlogs.discovery.configured import ConfiguredDiscovery, discovery_from_config


class DiscoveryError(RuntimeError):
    """Raised when the endpoint list cannot be obtained."""


@runtime_checkable
class Discovery(Protocol):
    """Protocol for endpoint discovery sources."""

    @property
    def source_name(self) -> str: ...

    async def discover(self) -> list[str]:
        """Return the ordered list of endpoint addresses.

        Raises
        ------
        DiscoveryError
            If the list cannot be obtained.
        """
        ...


__all__ = ["Discovery", "DiscoveryError", "ConfiguredDiscovery", "discovery_from_config"]
