"""bnlogs CLI commands."""
