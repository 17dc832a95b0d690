"""``bnlogs --canister-id ID`` — tail a canister's logs from every boundary node.

Connects to each configured API boundary node, prints every sanitized log
line to stdout as it arrives, and keeps running until Ctrl+C.
"""

from __future__ import annotations

import asyncio
import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from bnlogs import __version__
from bnlogs.bridge.transport import WebSocketConnector
from bnlogs.cli._logging import configure_logging
from bnlogs.config import BnLogsConfig
from bnlogs.core.supervisor import FanoutSupervisor
from bnlogs.core.tls import install_default_tls_context
from bnlogs.discovery import DiscoveryError, discovery_from_config
from bnlogs.sinks import StdoutSink

logger = logging.getLogger(__name__)

err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"bnlogs {__version__}")
        raise typer.Exit()


def tail_cmd(
    canister_id: str = typer.Option(
        ...,
        "--canister-id",
        "-c",
        help="The canister ID to monitor logs for.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Tail a canister's logs from every API boundary node.

    Endpoints, log level, keepalive period and size limits come from
    BNLOGS_* environment variables or a .env file.
    """
    try:
        settings = BnLogsConfig()
    except ValidationError as exc:
        err_console.print(f"[bold red]Invalid configuration:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2)

    configure_logging(settings.log_level_value)
    ssl_context = install_default_tls_context()

    supervisor = FanoutSupervisor(
        discovery_from_config(settings),
        sink=StdoutSink(),
        connector=WebSocketConnector(ssl_context),
        config=settings,
    )

    try:
        asyncio.run(supervisor.run(canister_id))
    except DiscoveryError as exc:
        logger.error("Failed to fetch API boundary nodes: %s", exc)
        err_console.print(f"[bold red]Discovery failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down WebSocket clients.")
