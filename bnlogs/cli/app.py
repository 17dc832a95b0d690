"""Main Typer application — registers the single ``bnlogs`` command.

Entry point: ``bnlogs`` (configured via pyproject.toml console_scripts).
With one registered command Typer runs it directly, so the invocation is
``bnlogs --canister-id ID`` with no subcommand name.
"""

from __future__ import annotations

import typer

from bnlogs.cli.commands.tail import tail_cmd

app = typer.Typer(
    name="bnlogs",
    help="A WebSocket client for Internet Computer API boundary node logs.",
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(
    name="tail",
    help="Tail a canister's logs from every API boundary node.",
)(tail_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
