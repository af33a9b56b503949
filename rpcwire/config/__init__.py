"""Configuration loading and validation."""

from rpcwire.config.loader import load_config
from rpcwire.config.schema import ClientConfig, Config, LoggingConfig, ServerConfig

__all__ = [
    "ClientConfig",
    "Config",
    "LoggingConfig",
    "ServerConfig",
    "load_config",
]
