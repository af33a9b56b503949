"""Client transports: how RpcClient gets its bytes to a server.

HttpTransport posts each message to a JSON-RPC HTTP endpoint with httpx.
LoopbackTransport hands messages to a Dispatcher in the same process, which
is handy for tests and for embedding a service without a socket.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

from rpcwire.rpc.client import TransportError

if TYPE_CHECKING:
    from rpcwire.rpc.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


@runtime_checkable
class Transport(Protocol):
    """Moves encoded messages to a peer.

    send() must return the peer's reply bytes when expect_reply is True. For
    notifications (expect_reply=False) it only has to confirm that the bytes
    were accepted; whatever it returns is ignored.
    """

    async def send(self, payload: bytes, *, expect_reply: bool = True) -> bytes: ...

    async def aclose(self) -> None: ...


class HttpTransport:
    """POSTs JSON-RPC messages to a single URL.

    Usage:
        async with HttpTransport("http://127.0.0.1:8765/rpc", timeout=10) as transport:
            client = RpcClient(transport)
            ...

    The underlying httpx.AsyncClient is created on first use if the transport
    is not entered as a context manager, and released by aclose().
    """

    def __init__(
        self,
        url: str,
        timeout: float | None = DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
        *,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            url: Full URL of the JSON-RPC endpoint.
            timeout: httpx timeout in seconds for each request. None disables
                it; the caller's CallContext still bounds every call.
            headers: Extra HTTP headers sent with every request.
            http_transport: Optional httpx transport (e.g. httpx.MockTransport).
        """
        self._url = url
        self._timeout = timeout
        self._headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **(headers or {}),
        }
        self._http_transport = http_transport
        self._client: httpx.AsyncClient | None = None
        logger.debug("HttpTransport initialized: url=%s, timeout=%s", url, timeout)

    @property
    def url(self) -> str:
        return self._url

    async def __aenter__(self) -> HttpTransport:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                transport=self._http_transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the httpx client, if one was created."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, payload: bytes, *, expect_reply: bool = True) -> bytes:
        """POST payload and return the response body.

        Raises:
            TransportError: On connection failure, timeout, any other httpx
                error, or a non-2xx HTTP status.
        """
        client = self._ensure_client()
        try:
            response = await client.post(self._url, content=payload)
        except httpx.ConnectError as e:
            logger.warning("Connection failed to %s: %s", self._url, e)
            raise TransportError(f"Connection failed: {e}") from e
        except httpx.TimeoutException as e:
            logger.warning("Request to %s timed out after %ss", self._url, self._timeout)
            raise TransportError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.warning("HTTP error talking to %s: %s", self._url, e)
            raise TransportError(f"HTTP error: {e}") from e

        if not response.is_success:
            logger.warning("Unexpected HTTP status %d from %s", response.status_code, self._url)
            raise TransportError(
                f"Unexpected HTTP status {response.status_code}: {response.text[:200]}"
            )
        return response.content if expect_reply else b""


class LoopbackTransport:
    """In-process transport that hands bytes straight to a Dispatcher."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    async def send(self, payload: bytes, *, expect_reply: bool = True) -> bytes:
        reply = await self._dispatcher.handle(payload)
        return reply or b""

    async def aclose(self) -> None:
        return None
