"""Runtime configuration — env-driven via pydantic-settings.

Reads from a ``.env`` file and ``BNLOGS_*`` environment variables.  The
command line only carries the canister ID; everything else (endpoint list,
keepalive period, transport limits, log level) lives here.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from bnlogs.bridge.transport import TransportLimits

DEFAULT_TARGET_TEMPLATE = "wss://{address}/logs/canister/{stream_id}"

# 5 KiB: both the whole-message and the single-frame ceiling.
DEFAULT_MAX_PAYLOAD_SIZE = 5 * 1024


class BnLogsConfig(BaseSettings):
    """Tailer configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BNLOGS_ENDPOINTS=bn1.example.org,bn2.example.org
        export BNLOGS_LOG_LEVEL=DEBUG
        export BNLOGS_PING_INTERVAL_SECONDS=5

    Or via .env file::

        BNLOGS_ENDPOINTS=["bn1.example.org", "bn2.example.org"]
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BNLOGS_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Discovery
    endpoints: Annotated[list[str], NoDecode] = []

    # Connection target
    target_template: str = DEFAULT_TARGET_TEMPLATE

    # Keepalive
    ping_interval_seconds: float = 10.0

    # Transport limits
    max_message_size: int = DEFAULT_MAX_PAYLOAD_SIZE
    max_frame_size: int = DEFAULT_MAX_PAYLOAD_SIZE
    open_timeout_seconds: float | None = 10.0

    @field_validator("endpoints", mode="before")
    @classmethod
    def _split_endpoints(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                return json.loads(text)
            return [part.strip() for part in text.split(",") if part.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value!r}")
        return level

    @field_validator("ping_interval_seconds", "max_message_size", "max_frame_size")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def log_level_value(self) -> int:
        """The numeric ``logging`` level for :attr:`log_level`."""
        return logging.getLevelName(self.log_level)

    def limits(self) -> TransportLimits:
        """Transport limits derived from this configuration."""
        return TransportLimits(
            max_message_size=self.max_message_size,
            max_frame_size=self.max_frame_size,
            open_timeout=self.open_timeout_seconds,
        )


@lru_cache(maxsize=1)
def get_config() -> BnLogsConfig:
    """Process-wide configuration, read from the environment on first use.

    Importing this module never reads the environment.
    """
    return BnLogsConfig()
