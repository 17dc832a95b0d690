"""Process-wide logging setup for the CLI.

Library modules only ever call ``logging.getLogger(__name__)``; handlers
are attached here, once, when the command starts.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# Third-party loggers that are too chatty below DEBUG.
_NOISY_LOGGERS = ("websockets",)


def configure_logging(level: int = logging.INFO) -> None:
    """Send log records to stderr via Rich at *level*.

    Does nothing to the root handlers if logging is already configured.
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
    )
    logging.getLogger("bnlogs").setLevel(level)

    noisy_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
