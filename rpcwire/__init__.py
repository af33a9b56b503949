"""rpcwire: JSON-RPC 2.0 with typed handlers over HTTP.

Server side:
    server = Server()

    @server.method()
    async def add(ctx: CallContext, params: list[int]) -> int:
        return sum(params)

Client side:
    async with RpcClient(HttpTransport("http://127.0.0.1:8765/rpc")) as client:
        total = await client.call_result(CallContext.with_timeout(5), "add", [1, 2], int)
"""

__version__ = "0.1.0"

from rpcwire.core import CallContext, CancellationToken, RpcWireError  # noqa: E402
from rpcwire.rpc import (  # noqa: E402
    ABSENT,
    ApplicationError,
    CallCancelledError,
    ClientError,
    Dispatcher,
    HandlerRegistry,
    HttpTransport,
    LoopbackTransport,
    RegistrationError,
    RpcClient,
    RpcError,
    TransportError,
)
from rpcwire.server import Server  # noqa: E402

__all__ = [
    "__version__",
    "ABSENT",
    "ApplicationError",
    "CallCancelledError",
    "CallContext",
    "CancellationToken",
    "ClientError",
    "Dispatcher",
    "HandlerRegistry",
    "HttpTransport",
    "LoopbackTransport",
    "RegistrationError",
    "RpcClient",
    "RpcError",
    "RpcWireError",
    "Server",
    "TransportError",
]
