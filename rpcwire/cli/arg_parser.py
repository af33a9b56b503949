"""Argument parsing for the rpcwire CLI."""

import argparse
from pathlib import Path

from rpcwire import __version__


def add_config_arg(parser: argparse.ArgumentParser) -> None:
    """Add --config argument to a parser."""
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: $RPCWIRE_CONFIG, else ~/.rpcwire and ./.rpcwire layers)",
    )


def add_client_args(parser: argparse.ArgumentParser) -> None:
    """Add the arguments shared by call and notify."""
    parser.add_argument("method", help="Method name")
    parser.add_argument(
        "params",
        nargs="?",
        default=None,
        help="Params as JSON (e.g. '[1, 2]' or '{\"name\": \"x\"}'); omitted if not given",
    )
    parser.add_argument("--url", help="Endpoint URL (default from config)")
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Seconds to wait for the call (default from config)",
    )
    parser.add_argument(
        "--header", "-H",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Extra HTTP header (repeatable)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rpcwire",
        description="JSON-RPC 2.0 over HTTP: serve, call and notify",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default from config)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    add_config_arg(parser)

    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run a JSON-RPC server with the built-in echo and ping methods",
    )
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", "-p", type=int, help="Port (default from config)")
    serve_parser.add_argument("--path", help="Endpoint path (default from config)")
    serve_parser.add_argument(
        "--reject-zero-params",
        action="store_true",
        default=None,
        help="Treat params that decode to an empty value as invalid",
    )

    call_parser = subparsers.add_parser(
        "call",
        help="Call a method and print its result as JSON",
    )
    add_client_args(call_parser)

    notify_parser = subparsers.add_parser(
        "notify",
        help="Send a notification (no response expected)",
    )
    add_client_args(notify_parser)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)
