"""CLI command modules."""

from deferq.cli.commands import entries, watch

__all__ = [
    "entries",
    "watch",
]
