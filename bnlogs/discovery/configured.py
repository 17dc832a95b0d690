"""Discovery from a statically configured endpoint list."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bnlogs.config import BnLogsConfig

logger = logging.getLogger(__name__)


class ConfiguredDiscovery:
    """Returns a fixed address list.

    Blank entries are dropped and duplicates removed, keeping the first
    occurrence so the configured order is preserved.
    """

    def __init__(self, addresses: Iterable[str]) -> None:
        seen: set[str] = set()
        self._addresses: list[str] = []
        for raw in addresses:
            address = raw.strip()
            if not address or address in seen:
                continue
            seen.add(address)
            self._addresses.append(address)

    @property
    def source_name(self) -> str:
        return "configured"

    async def discover(self) -> list[str]:
        logger.debug("ConfiguredDiscovery: %d configured address(es).", len(self._addresses))
        return list(self._addresses)

    def __repr__(self) -> str:
        return f"ConfiguredDiscovery(addresses={self._addresses!r})"


def discovery_from_config(config: BnLogsConfig) -> ConfiguredDiscovery:
    """Build the default discovery source for *config*."""
    return ConfiguredDiscovery(config.endpoints)
