"""Integration tests: RpcClient over HTTP against a live server."""

import asyncio
from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from rpcwire.config.schema import ServerConfig
from rpcwire.core.context import CallContext
from rpcwire.rpc.client import CallCancelledError, RpcClient, TransportError
from rpcwire.rpc.errors import InvalidParamsError, MethodNotFoundError, ServerError
from rpcwire.rpc.transport import HttpTransport
from rpcwire.server import Server

from conftest import Person, build_registry


@pytest_asyncio.fixture
async def live_url() -> AsyncIterator[str]:
    """Start a Server with the standard test handlers on an ephemeral port."""
    server = Server(ServerConfig(port=0), registry=build_registry())

    async def slow(ctx: CallContext) -> str:
        await asyncio.sleep(1)
        return "late"

    server.register("slow", slow)
    tcp_server = await server.start()
    host, port = tcp_server.sockets[0].getsockname()[:2]
    try:
        yield f"http://{host}:{port}/rpc"
    finally:
        tcp_server.close()
        await tcp_server.wait_closed()


class TestHttpRoundTrip:
    """End-to-end calls through the asyncio HTTP server."""

    @pytest.mark.asyncio
    async def test_call(self, live_url):
        async with RpcClient(HttpTransport(live_url, timeout=5)) as client:
            assert await client.call_result(None, "add", [1, 2, 3], int) == 6
            greeting = await client.call_result(None, "greet", Person(name="Lin"), dict)
            assert greeting == {"text": "Hello, Lin!"}

    @pytest.mark.asyncio
    async def test_errors(self, live_url):
        async with RpcClient(HttpTransport(live_url, timeout=5)) as client:
            with pytest.raises(MethodNotFoundError):
                await client.call(None, "missing")
            with pytest.raises(InvalidParamsError):
                await client.call(None, "upper", [1, 2])
            with pytest.raises(ServerError, match="no stock"):
                await client.call(None, "fail", "no stock")

    @pytest.mark.asyncio
    async def test_notification(self, live_url):
        async with RpcClient(HttpTransport(live_url, timeout=5)) as client:
            await client.notify(None, "echo", {"x": 1})

    @pytest.mark.asyncio
    async def test_concurrent_calls(self, live_url):
        async with RpcClient(HttpTransport(live_url, timeout=5)) as client:
            results = await asyncio.gather(
                *(client.call_result(None, "add", [i, 1], int) for i in range(10))
            )
        assert results == [i + 1 for i in range(10)]

    @pytest.mark.asyncio
    async def test_deadline(self, live_url):
        async with RpcClient(HttpTransport(live_url, timeout=5)) as client:
            with pytest.raises(CallCancelledError):
                await client.call(CallContext.with_timeout(0.1), "slow")

    @pytest.mark.asyncio
    async def test_raw_http(self, live_url):
        """Plain HTTP behavior seen by non-rpcwire clients."""
        async with httpx.AsyncClient(timeout=5) as http:
            response = await http.get(live_url)
            assert response.status_code == 404
            assert response.text == "not found"

            response = await http.post(live_url, content=b"not json")
            assert response.status_code == 200
            assert response.json()["error"]["code"] == -32700

            response = await http.post(live_url, content=b'{"jsonrpc":"2.0","method":"ping"}')
            assert response.status_code == 200
            assert response.content == b""

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        transport = HttpTransport("http://127.0.0.1:1/rpc", timeout=2)
        async with RpcClient(transport) as client:
            with pytest.raises(TransportError):
                await client.call(None, "ping")