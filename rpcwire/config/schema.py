"""Pydantic models for rpcwire configuration validation."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rpcwire.core.constants import DEFAULT_HOST, DEFAULT_PATH, DEFAULT_PORT


class ServerConfig(BaseModel):
    """Configuration for the JSON-RPC HTTP server.

    Example in config.json:
        "server": {
            "host": "127.0.0.1",
            "port": 8765,
            "path": "/rpc"
        }
    """

    model_config = ConfigDict(extra="forbid")

    host: str = DEFAULT_HOST
    """Host address to bind to."""

    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    """Port number for the HTTP server (0 picks a free port)."""

    path: str = DEFAULT_PATH
    """URL path the JSON-RPC endpoint is mounted on. "/" is always accepted too."""

    max_concurrent: int = Field(default=32, ge=1)
    """Maximum connections handled at once."""

    max_body_size: int = Field(default=1_048_576, ge=1)
    """Largest accepted request body in bytes."""

    read_timeout: float = Field(default=30.0, gt=0)
    """Seconds allowed for each read from a client."""

    reject_zero_params: bool = False
    """Treat params that decode to an empty value as invalid params."""

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"path must start with '/', got: {v!r}")
        return v


class ClientConfig(BaseModel):
    """Configuration for `rpcwire call` / `rpcwire notify`.

    Example in config.json:
        "client": {
            "url": "http://127.0.0.1:8765/rpc",
            "timeout": 10.0,
            "headers": {"X-Trace": "cli"}
        }
    """

    model_config = ConfigDict(extra="forbid")

    url: str = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}{DEFAULT_PATH}"
    timeout: float = Field(default=60.0, gt=0)
    headers: dict[str, str] = {}

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"url must be an http(s) URL, got: {v!r}")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    """Log level for the rpcwire logger."""

    file: str | None = None
    """Optional log file (rotated at 5MB, 3 backups kept)."""


class Config(BaseModel):
    """Root configuration model.

    Example config.json:
        {
            "server": {"port": 9000, "reject_zero_params": true},
            "client": {"url": "http://127.0.0.1:9000/rpc"},
            "logging": {"level": "DEBUG"}
        }
    """

    model_config = ConfigDict(extra="forbid")

    server: ServerConfig = ServerConfig()
    client: ClientConfig = ClientConfig()
    logging: LoggingConfig = LoggingConfig()
