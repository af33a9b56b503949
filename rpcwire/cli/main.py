"""Entry point for the rpcwire CLI."""

import argparse
import asyncio

from dotenv import load_dotenv

from rpcwire.cli.arg_parser import parse_args
from rpcwire.cli.commands import (
    EXIT_CLIENT_ERROR,
    _print_error,
    cmd_call,
    cmd_notify,
    cmd_serve,
    parse_headers,
)
from rpcwire.config.loader import load_config
from rpcwire.config.schema import ClientConfig, Config, ServerConfig
from rpcwire.core.errors import ConfigError
from rpcwire.logging_setup import configure_logging


def _server_config(config: Config, args: argparse.Namespace) -> ServerConfig:
    overrides = {
        key: value
        for key, value in (
            ("host", args.host),
            ("port", args.port),
            ("path", args.path),
            ("reject_zero_params", args.reject_zero_params),
        )
        if value is not None
    }
    return ServerConfig.model_validate({**config.server.model_dump(), **overrides})


def _client_config(config: Config, args: argparse.Namespace) -> ClientConfig:
    data = config.client.model_dump()
    if args.url is not None:
        data["url"] = args.url
    if args.timeout is not None:
        data["timeout"] = args.timeout
    data["headers"] = {**data["headers"], **parse_headers(args.header)}
    return ClientConfig.model_validate(data)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return its exit code."""
    args = parse_args(argv)
    if args.command is None:
        print("Usage: rpcwire <command>")
        print("Commands: serve, call, notify")
        return EXIT_CLIENT_ERROR

    try:
        config = load_config(args.config)
    except ConfigError as e:
        _print_error(e.message)
        return EXIT_CLIENT_ERROR

    configure_logging(
        args.log_level or config.logging.level,
        args.log_file or config.logging.file,
    )

    try:
        if args.command == "serve":
            return asyncio.run(cmd_serve(_server_config(config, args)))
        client_config = _client_config(config, args)
    except ValueError as e:
        # pydantic's ValidationError is a ValueError
        _print_error(str(e))
        return EXIT_CLIENT_ERROR

    if args.command == "call":
        return asyncio.run(cmd_call(client_config, args.method, args.params))
    return asyncio.run(cmd_notify(client_config, args.method, args.params))


def main() -> None:
    """Console script entry point."""
    load_dotenv()
    try:
        raise SystemExit(run())
    except KeyboardInterrupt:
        raise SystemExit(130) from None
