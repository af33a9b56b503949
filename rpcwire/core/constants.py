"""Core constants and paths for rpcwire.

Single source of truth for global paths. All modules should import from here
instead of hardcoding paths like `Path.home() / ".rpcwire"`.
"""

from pathlib import Path

RPCWIRE_DIR_NAME = ".rpcwire"
CONFIG_FILE_NAME = "config.json"
CONFIG_ENV_VAR = "RPCWIRE_CONFIG"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765
DEFAULT_PATH = "/rpc"


def get_rpcwire_dir() -> Path:
    """Get ~/.rpcwire (global config directory)."""
    return Path.home() / RPCWIRE_DIR_NAME


def get_default_config_path() -> Path:
    """Get default config file path."""
    return get_rpcwire_dir() / CONFIG_FILE_NAME
