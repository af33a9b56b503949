"""Client-side call engine for JSON-RPC 2.0.

RpcClient builds requests, hands the bytes to a Transport and correlates the
reply. It knows nothing about HTTP: see rpcwire.rpc.transport for the HTTP
binding and the in-process loopback.

Usage:
    async with RpcClient(HttpTransport("http://127.0.0.1:8765/rpc")) as client:
        response = await client.call(CallContext.with_timeout(5), "echo", "hi")
        print(response.decode_result(str))

Callers see three outcomes:
    - success: a Response whose result they decode explicitly,
    - RpcError (or a subclass): the peer answered with an error object,
    - ClientError (TransportError, CallCancelledError): no answer was obtained.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, TypeVar

from rpcwire.core.context import CallContext
from rpcwire.core.errors import RpcWireError
from rpcwire.rpc.payload import Payload, PayloadError
from rpcwire.rpc.protocol import ParseError, parse_response, serialize_request
from rpcwire.rpc.types import ABSENT, Request, Response

if TYPE_CHECKING:
    from rpcwire.rpc.transport import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ClientError(RpcWireError):
    """Client-side failure: no usable response was obtained."""


class TransportError(ClientError):
    """The transport could not deliver the request or read the reply."""


class CallCancelledError(ClientError):
    """The caller's context was cancelled or its deadline passed while waiting."""


class RpcClient:
    """JSON-RPC 2.0 client.

    Safe for concurrent use: every call gets its own id and its own task, and
    calls share nothing but the transport and the id counter.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

    @property
    def transport(self) -> Transport:
        return self._transport

    async def __aenter__(self) -> RpcClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying transport."""
        await self._transport.aclose()

    def _next_id(self) -> int:
        """Generate the next request id (1, 2, 3, ...; never reused)."""
        with self._id_lock:
            return next(self._ids)

    @staticmethod
    def _encode_params(params: Any) -> Payload | Any:
        if params is ABSENT:
            return ABSENT
        if isinstance(params, Payload):
            return params
        try:
            return Payload.from_value(params)
        except PayloadError as e:
            raise ClientError(f"Cannot encode params: {e.message}") from e

    async def call(
        self,
        ctx: CallContext | None,
        method: str,
        params: Any = ABSENT,
    ) -> Response:
        """Call a remote method and wait for its response.

        Args:
            ctx: Cancellation/deadline scope. None means wait indefinitely.
            method: The RPC method name.
            params: Any value pydantic can serialize, or ABSENT to omit params.

        Returns:
            The successful Response. Use response.decode_result(shape).

        Raises:
            RpcError: If the peer returned an error object. The Response is
                available as the exception's .response attribute.
            CallCancelledError: If ctx was cancelled or expired first.
            TransportError: If the transport failed.
            ClientError: If params cannot be encoded or the reply is not a
                valid response to this request.
        """
        ctx = ctx if ctx is not None else CallContext()
        request = Request(method=method, params=self._encode_params(params), id=self._next_id())
        payload = serialize_request(request)

        logger.debug("RPC call: method=%s, id=%s", method, request.id)
        reply = await self._race(ctx, self._transport.send(payload, expect_reply=True), request)

        try:
            response = parse_response(reply)
        except ParseError as e:
            logger.warning("Invalid server response for method=%s: %s", method, e)
            raise ClientError(f"Invalid server response: {e}") from e

        if response.error is not None:
            error = response.error.to_exception()
            error.response = response
            # A peer that could not read our id answers with id null
            if response.id is not None and response.id != request.id:
                raise ClientError(
                    f"Response id mismatch: sent {request.id!r}, got {response.id!r}"
                )
            logger.debug("RPC error %d for method=%s: %s", error.code, method, error.message)
            raise error

        if response.id != request.id:
            raise ClientError(f"Response id mismatch: sent {request.id!r}, got {response.id!r}")
        return response

    async def call_result(
        self,
        ctx: CallContext | None,
        method: str,
        params: Any = ABSENT,
        shape: type[T] | Any = Any,
    ) -> T:
        """Call a method and decode its result into shape.

        Raises:
            Everything call() raises, plus ClientError if the result does not
            match shape.
        """
        response = await self.call(ctx, method, params)
        try:
            return response.decode_result(shape)
        except PayloadError as e:
            raise ClientError(f"Unexpected result for {method}: {e.message}") from e

    async def notify(
        self,
        ctx: CallContext | None,
        method: str,
        params: Any = ABSENT,
    ) -> None:
        """Send a notification. Returns once the transport accepted the bytes.

        Raises:
            CallCancelledError: If ctx was cancelled or expired first.
            TransportError: If the transport failed.
        """
        ctx = ctx if ctx is not None else CallContext()
        request = Request(method=method, params=self._encode_params(params))
        logger.debug("RPC notify: method=%s", method)
        await self._race(
            ctx, self._transport.send(serialize_request(request), expect_reply=False), request
        )

    async def _race(self, ctx: CallContext, send: Awaitable[bytes], request: Request) -> bytes:
        """Run send in its own task and return its result unless ctx finishes first."""
        if ctx.done:
            if asyncio.iscoroutine(send):
                send.close()
            raise CallCancelledError(f"{request.method}: {ctx.reason()}")

        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(send)
        cancelled = asyncio.Event()

        def on_cancel() -> None:
            loop.call_soon_threadsafe(cancelled.set)

        ctx.token.on_cancel(on_cancel)
        waiter = asyncio.ensure_future(cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=ctx.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            ctx.token.remove_callback(on_cancel)
            waiter.cancel()
            if not task.done():
                # Abandon the in-flight send; the peer may still process it
                task.cancel()

        if task in done:
            return task.result()

        reason = ctx.reason() or "context deadline exceeded"
        logger.debug("RPC %s abandoned: %s", request.method, reason)
        raise CallCancelledError(f"{request.method}: {reason}")
