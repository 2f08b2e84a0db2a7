"""CLI module."""

from deferq.cli.app import app

__all__ = ["app"]
