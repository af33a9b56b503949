"""Core types: errors, cancellation and call context."""

from rpcwire.core.cancel import CancellationToken
from rpcwire.core.context import CallContext
from rpcwire.core.errors import ConfigError, RpcWireError

__all__ = [
    "CancellationToken",
    "CallContext",
    "RpcWireError",
    "ConfigError",
]
