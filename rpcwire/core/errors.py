"""Typed exception hierarchy for rpcwire."""

from __future__ import annotations

from pathlib import Path


class RpcWireError(Exception):
    """Base class for all rpcwire errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(RpcWireError):
    """Raised for configuration issues (missing file, invalid JSON, validation failure).

    Attributes:
        layer: Name of the config layer at fault ("global", "local", ...), if known.
        path: File of that layer, if known.
    """

    def __init__(self, message: str, layer: str | None = None, path: Path | None = None) -> None:
        super().__init__(message)
        self.layer = layer
        self.path = path
