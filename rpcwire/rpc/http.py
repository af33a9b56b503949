"""Pure asyncio HTTP server for JSON-RPC 2.0 requests.

A minimal HTTP/1.1 server: one request per connection, answered with
Connection: close. It only frames bytes; everything JSON-RPC is the
Dispatcher's job.

Routing:
    - POST <path> (default /rpc) or POST / -> Dispatcher
    - anything else -> 404 "not found" (plain text, no JSON-RPC body)

Example usage:
    registry = HandlerRegistry()
    dispatcher = Dispatcher(registry)
    await run_http_server(dispatcher, port=8765)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rpcwire.core.constants import DEFAULT_HOST, DEFAULT_PATH, DEFAULT_PORT
from rpcwire.core.errors import RpcWireError

if TYPE_CHECKING:
    from rpcwire.rpc.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

MAX_BODY_SIZE = 1_048_576  # 1MB
READ_TIMEOUT = 30.0

# HTTP header limits
MAX_HEADERS_COUNT = 128
MAX_HEADER_NAME_LEN = 1024
MAX_HEADER_VALUE_LEN = 8192
MAX_TOTAL_HEADERS_SIZE = 32 * 1024
MAX_REQUEST_LINE_LEN = 8192

_STATUS_MESSAGES = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    413: "Payload Too Large",
    500: "Internal Server Error",
}


@dataclass
class HttpRequest:
    """Parsed HTTP request.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        path: Request path without query string (e.g., "/rpc")
        headers: Dict of lowercase header names to values
        body: Raw request body
    """

    method: str
    path: str
    headers: dict[str, str]
    body: bytes


class HttpParseError(RpcWireError):
    """Raised when HTTP request parsing fails.

    Attributes:
        status: HTTP status to answer with.
    """

    def __init__(self, message: str, status: int = 400) -> None:
        self.status = status
        super().__init__(message)


async def _readline(reader: asyncio.StreamReader, timeout: float, what: str) -> bytes:
    try:
        return await asyncio.wait_for(reader.readline(), timeout=timeout)
    except TimeoutError:
        raise HttpParseError(f"{what} timeout") from None
    except ValueError as e:
        # StreamReader raises ValueError when a line exceeds its buffer limit
        raise HttpParseError(f"{what} too long") from e


async def read_http_request(
    reader: asyncio.StreamReader,
    max_body_size: int = MAX_BODY_SIZE,
    timeout: float = READ_TIMEOUT,
) -> HttpRequest:
    """Read and parse an HTTP request from the stream.

    Args:
        reader: The asyncio StreamReader to read from.
        max_body_size: Largest accepted Content-Length in bytes.
        timeout: Seconds allowed for each read.

    Returns:
        Parsed HttpRequest object.

    Raises:
        HttpParseError: If the request is malformed or too large.
    """
    request_line = await _readline(reader, timeout, "Request line")
    if not request_line:
        raise HttpParseError("Empty request")

    if len(request_line) > MAX_REQUEST_LINE_LEN:
        raise HttpParseError(f"Request line too long: {len(request_line)} > {MAX_REQUEST_LINE_LEN}")

    # Parse request line: "POST /rpc HTTP/1.1\r\n"
    try:
        request_line_str = request_line.decode("ascii").strip()
    except UnicodeDecodeError as e:
        raise HttpParseError(f"Invalid request encoding: {e}") from e
    parts = request_line_str.split(" ")
    if len(parts) != 3:
        raise HttpParseError(f"Invalid request line: {request_line_str[:100]}")
    method, target, _version = parts
    path = target.split("?", 1)[0]

    headers: dict[str, str] = {}
    total_headers_size = 0

    while True:
        header_line = await _readline(reader, timeout, "Header")
        if not header_line or header_line in (b"\r\n", b"\n"):
            break

        total_headers_size += len(header_line)
        if total_headers_size > MAX_TOTAL_HEADERS_SIZE:
            raise HttpParseError(
                f"Total headers size exceeds limit: {total_headers_size} > {MAX_TOTAL_HEADERS_SIZE}"
            )

        try:
            header_str = header_line.decode("latin-1").strip()
        except UnicodeDecodeError as e:
            raise HttpParseError(f"Invalid header encoding: {e}") from e

        if ":" not in header_str:
            continue

        name, value = header_str.split(":", 1)
        name = name.strip()
        value = value.strip()

        if len(name) > MAX_HEADER_NAME_LEN:
            raise HttpParseError(f"Header name too long: {len(name)} > {MAX_HEADER_NAME_LEN}")
        if len(value) > MAX_HEADER_VALUE_LEN:
            raise HttpParseError(f"Header value too long: {len(value)} > {MAX_HEADER_VALUE_LEN}")
        if len(headers) >= MAX_HEADERS_COUNT:
            raise HttpParseError(f"Too many headers: exceeds limit of {MAX_HEADERS_COUNT}")

        headers[name.lower()] = value

    if "chunked" in headers.get("transfer-encoding", "").lower():
        raise HttpParseError("Chunked transfer encoding is not supported")

    content_length_str = headers.get("content-length", "0")
    try:
        content_length = int(content_length_str)
    except ValueError as e:
        raise HttpParseError(f"Invalid Content-Length: {content_length_str}") from e
    if content_length < 0:
        raise HttpParseError(f"Invalid Content-Length: {content_length_str}")

    if content_length > max_body_size:
        raise HttpParseError(
            f"Request body too large: {content_length} > {max_body_size}",
            status=413,
        )

    body = b""
    if content_length > 0:
        try:
            body = await asyncio.wait_for(reader.readexactly(content_length), timeout=timeout)
        except TimeoutError:
            raise HttpParseError("Body read timeout") from None
        except asyncio.IncompleteReadError as e:
            raise HttpParseError(
                f"Incomplete body: expected {content_length}, got {len(e.partial)}"
            ) from e

    return HttpRequest(method=method, path=path, headers=headers, body=body)


async def send_http_response(
    writer: asyncio.StreamWriter,
    status: int,
    body: bytes | str,
    content_type: str = "application/json",
) -> None:
    """Send an HTTP response.

    Args:
        writer: The asyncio StreamWriter to write to.
        status: HTTP status code (e.g., 200, 400, 404).
        body: Response body.
        content_type: Content-Type header value.
    """
    status_message = _STATUS_MESSAGES.get(status, "Unknown")
    body_bytes = body.encode("utf-8") if isinstance(body, str) else body
    headers = [
        f"HTTP/1.1 {status} {status_message}",
        f"Content-Type: {content_type}; charset=utf-8",
        f"Content-Length: {len(body_bytes)}",
        "Connection: close",
        "",
        "",
    ]
    writer.write("\r\n".join(headers).encode("ascii") + body_bytes)
    await writer.drain()


def _is_rpc_route(request: HttpRequest, path: str) -> bool:
    return request.method == "POST" and request.path in (path, "/")


async def handle_connection(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    dispatcher: Dispatcher,
    path: str = DEFAULT_PATH,
    max_body_size: int = MAX_BODY_SIZE,
    read_timeout: float = READ_TIMEOUT,
) -> None:
    """Handle a single HTTP connection.

    Pipeline:
        1. Parse HTTP request (400/413 on bad framing)
        2. Route: POST to the RPC path only, 404 otherwise
        3. Dispatch the body
        4. Send the JSON-RPC response (empty 200 for notifications)

    Args:
        reader: The asyncio StreamReader for the connection.
        writer: The asyncio StreamWriter for the connection.
        dispatcher: Dispatcher that turns request bytes into response bytes.
        path: Path the JSON-RPC endpoint is mounted on ("/" is always accepted).
        max_body_size: Largest accepted request body in bytes.
        read_timeout: Seconds allowed for each read from the client.
    """
    try:
        try:
            http_request = await read_http_request(reader, max_body_size, read_timeout)
        except HttpParseError as e:
            logger.debug("Bad HTTP request: %s", e)
            await send_http_response(writer, e.status, e.message, "text/plain")
            return

        if not _is_rpc_route(http_request, path):
            logger.debug("No route for %s %s", http_request.method, http_request.path)
            await send_http_response(writer, 404, "not found", "text/plain")
            return

        reply = await dispatcher.handle(http_request.body)

        if reply is not None:
            await send_http_response(writer, 200, reply)
        else:
            # Notification: no JSON-RPC body, but the HTTP exchange still completes
            await send_http_response(writer, 200, b"")

    except (ConnectionError, asyncio.IncompleteReadError) as e:
        logger.debug("Client disconnected: %s", e)
    except Exception as e:
        logger.error("Unexpected error handling connection: %s", e, exc_info=True)
        try:
            await send_http_response(writer, 500, "internal server error", "text/plain")
        except Exception as send_err:
            logger.debug("Failed to send error response (client disconnected?): %s", send_err)

    finally:
        try:
            writer.close()
            await writer.wait_closed()
        except Exception as close_err:
            logger.debug("Connection close failed (already closed?): %s", close_err)


async def start_http_server(
    dispatcher: Dispatcher,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    path: str = DEFAULT_PATH,
    max_concurrent: int = 32,
    max_body_size: int = MAX_BODY_SIZE,
    read_timeout: float = READ_TIMEOUT,
) -> asyncio.Server:
    """Bind the JSON-RPC HTTP server and start accepting connections.

    Returns:
        The listening asyncio.Server. Port 0 binds an ephemeral port; read it
        back from server.sockets[0].getsockname().
    """
    semaphore = asyncio.Semaphore(max_concurrent)

    async def client_handler(
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        async with semaphore:
            await handle_connection(
                reader,
                writer,
                dispatcher,
                path=path,
                max_body_size=max_body_size,
                read_timeout=read_timeout,
            )

    server = await asyncio.start_server(client_handler, host=host, port=port)
    addr = server.sockets[0].getsockname() if server.sockets else (host, port)
    logger.info("JSON-RPC HTTP server running at http://%s:%s%s", addr[0], addr[1], path)
    return server


async def run_http_server(
    dispatcher: Dispatcher,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    path: str = DEFAULT_PATH,
    max_concurrent: int = 32,
    max_body_size: int = MAX_BODY_SIZE,
    read_timeout: float = READ_TIMEOUT,
    started_event: asyncio.Event | None = None,
    shutdown_event: asyncio.Event | None = None,
) -> None:
    """Run the HTTP server until cancelled or shutdown_event is set.

    Args:
        dispatcher: Dispatcher serving the registered methods.
        host: Host to bind to. Defaults to 127.0.0.1.
        port: Port to listen on. Defaults to 8765.
        path: Path of the JSON-RPC endpoint. Defaults to /rpc.
        max_concurrent: Maximum connections handled at once.
        max_body_size: Largest accepted request body in bytes.
        read_timeout: Seconds allowed for each read from a client.
        started_event: Set once the server is bound and listening.
        shutdown_event: Stops the server when set.
    """
    server = await start_http_server(
        dispatcher,
        host=host,
        port=port,
        path=path,
        max_concurrent=max_concurrent,
        max_body_size=max_body_size,
        read_timeout=read_timeout,
    )

    if started_event:
        started_event.set()

    async with server:
        if shutdown_event is None:
            await server.serve_forever()
        else:
            await shutdown_event.wait()
        server.close()
        await server.wait_closed()
        logger.info("HTTP server stopped")
