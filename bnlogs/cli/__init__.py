"""bnlogs CLI — Typer-based command-line interface.

Provides the ``bnlogs`` command, which tails one canister's logs from every
configured API boundary node at once.

Diagnostics go to stderr through Rich; standard output carries log lines only.
"""
