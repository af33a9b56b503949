"""Command-line interface."""

from rpcwire.cli.main import main, run

__all__ = ["main", "run"]
