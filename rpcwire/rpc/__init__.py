"""JSON-RPC 2.0 codec, handler registry, dispatcher and client.

Example usage:
    python -m rpcwire serve  # Start HTTP server on port 8765
    curl -X POST http://localhost:8765/rpc \\
        -d '{"jsonrpc":"2.0","method":"echo","params":"hi","id":1}'
"""

from rpcwire.rpc.client import CallCancelledError, ClientError, RpcClient, TransportError
from rpcwire.rpc.dispatcher import Dispatcher, is_zero_value
from rpcwire.rpc.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    ApplicationError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    RpcError,
    RpcParseError,
    ServerError,
    rpc_error_from,
)
from rpcwire.rpc.http import (
    MAX_BODY_SIZE,
    HttpParseError,
    HttpRequest,
    handle_connection,
    read_http_request,
    run_http_server,
    send_http_response,
    start_http_server,
)
from rpcwire.rpc.payload import Payload, PayloadError
from rpcwire.rpc.protocol import (
    ParseError,
    decode_envelope,
    make_error_response,
    make_success_response,
    parse_request,
    parse_response,
    request_from_envelope,
    serialize_request,
    serialize_response,
)
from rpcwire.rpc.registry import (
    HandlerDescriptor,
    HandlerRegistry,
    RegistrationError,
    RegistrationErrorKind,
)
from rpcwire.rpc.transport import HttpTransport, LoopbackTransport, Transport
from rpcwire.rpc.types import ABSENT, Envelope, ErrorObject, Request, Response

__all__ = [
    # Types
    "ABSENT",
    "Envelope",
    "ErrorObject",
    "Request",
    "Response",
    "Payload",
    "HttpRequest",
    # Codec
    "decode_envelope",
    "request_from_envelope",
    "parse_request",
    "parse_response",
    "serialize_request",
    "serialize_response",
    "make_error_response",
    "make_success_response",
    # Error codes
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "SERVER_ERROR",
    # Errors
    "ParseError",
    "PayloadError",
    "RpcError",
    "RpcParseError",
    "InvalidRequestError",
    "MethodNotFoundError",
    "InvalidParamsError",
    "InternalError",
    "ServerError",
    "ApplicationError",
    "rpc_error_from",
    "RegistrationError",
    "RegistrationErrorKind",
    "ClientError",
    "TransportError",
    "CallCancelledError",
    "HttpParseError",
    # Server side
    "HandlerRegistry",
    "HandlerDescriptor",
    "Dispatcher",
    "is_zero_value",
    "handle_connection",
    "read_http_request",
    "send_http_response",
    "start_http_server",
    "run_http_server",
    "MAX_BODY_SIZE",
    # Client side
    "RpcClient",
    "Transport",
    "HttpTransport",
    "LoopbackTransport",
]
