"""CLI commands.

Each command prints JSON to stdout, diagnostics to stderr, and returns an
exit code:
    0  success
    1  the server answered with a JSON-RPC error
    2  no answer (transport failure, timeout, bad arguments)
"""

import asyncio
import json
import sys
from typing import Any

from rpcwire.config.schema import ClientConfig, ServerConfig
from rpcwire.core.context import CallContext
from rpcwire.rpc.client import ClientError, RpcClient
from rpcwire.rpc.errors import RpcError
from rpcwire.rpc.transport import HttpTransport, Transport
from rpcwire.rpc.types import ABSENT
from rpcwire.server import Server

EXIT_OK = 0
EXIT_RPC_ERROR = 1
EXIT_CLIENT_ERROR = 2


def _print_json(data: Any) -> None:
    """Print data as formatted JSON to stdout."""
    print(json.dumps(data, indent=2))


def _print_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


def _print_info(message: str) -> None:
    """Print info message to stderr (so it doesn't pollute JSON output)."""
    print(message, file=sys.stderr)


def parse_params(params_json: str | None) -> Any:
    """Parse the PARAMS argument. None means "send no params member".

    Raises:
        ValueError: If params_json is not valid JSON.
    """
    if params_json is None:
        return ABSENT
    try:
        return json.loads(params_json)
    except json.JSONDecodeError as e:
        raise ValueError(f"params must be valid JSON: {e}") from e


def parse_headers(values: list[str]) -> dict[str, str]:
    """Turn ["Name: value", ...] into a header dict.

    Raises:
        ValueError: If an entry has no colon.
    """
    headers: dict[str, str] = {}
    for raw in values:
        if ":" not in raw:
            raise ValueError(f"header must look like NAME:VALUE, got: {raw!r}")
        name, value = raw.split(":", 1)
        headers[name.strip()] = value.strip()
    return headers


def build_demo_server(config: ServerConfig) -> Server:
    """Server with the built-in echo and ping methods."""
    server = Server(config)

    async def echo(ctx: CallContext, params: Any) -> Any:
        return params

    async def ping(ctx: CallContext) -> str:
        return "pong"

    server.register("echo", echo)
    server.register("ping", ping)
    return server


async def cmd_serve(config: ServerConfig) -> int:
    """Serve the demo methods until interrupted."""
    server = build_demo_server(config)
    started = asyncio.Event()
    task = asyncio.create_task(server.serve(started_event=started))
    waiter = asyncio.create_task(started.wait())
    await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    if task.done():
        waiter.cancel()
        try:
            task.result()
        except OSError as e:
            _print_error(f"Cannot listen on {config.host}:{config.port}: {e}")
            return EXIT_CLIENT_ERROR
        return EXIT_OK

    _print_info(f"Serving JSON-RPC on http://{config.host}:{config.port}{config.path} (Ctrl+C to stop)")
    await task
    return EXIT_OK


async def cmd_call(
    config: ClientConfig,
    method: str,
    params_json: str | None = None,
    transport: Transport | None = None,
) -> int:
    """Call method and print its result.

    Args:
        config: Client settings (url, timeout, headers).
        method: Method name.
        params_json: Params as a JSON string, or None to omit params.
        transport: Transport override; defaults to HTTP against config.url.

    Returns:
        Exit code.
    """
    try:
        params = parse_params(params_json)
    except ValueError as e:
        _print_error(str(e))
        return EXIT_CLIENT_ERROR

    transport = transport or HttpTransport(config.url, timeout=None, headers=config.headers)
    try:
        async with RpcClient(transport) as client:
            response = await client.call(CallContext.with_timeout(config.timeout), method, params)
    except RpcError as e:
        _print_error(f"[{e.code}] {e.message}")
        if e.data is not None:
            _print_json(e.to_dict())
        return EXIT_RPC_ERROR
    except ClientError as e:
        _print_error(e.message)
        return EXIT_CLIENT_ERROR

    _print_json(response.decode_result())
    return EXIT_OK


async def cmd_notify(
    config: ClientConfig,
    method: str,
    params_json: str | None = None,
    transport: Transport | None = None,
) -> int:
    """Send a notification. Nothing is printed on success."""
    try:
        params = parse_params(params_json)
    except ValueError as e:
        _print_error(str(e))
        return EXIT_CLIENT_ERROR

    transport = transport or HttpTransport(config.url, timeout=None, headers=config.headers)
    try:
        async with RpcClient(transport) as client:
            await client.notify(CallContext.with_timeout(config.timeout), method, params)
    except ClientError as e:
        _print_error(e.message)
        return EXIT_CLIENT_ERROR
    return EXIT_OK
