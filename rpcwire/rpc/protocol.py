"""JSON-RPC 2.0 envelope parsing and serialization.

Server-side:
    decode_envelope() -> request_from_envelope() -> Request
    make_success_response() / make_error_response() -> serialize_response()

Client-side:
    serialize_request() -> parse_response()
"""

from __future__ import annotations

import json
from typing import Any

from rpcwire.core.errors import RpcWireError
from rpcwire.rpc.errors import InvalidRequestError, RpcError
from rpcwire.rpc.payload import Payload
from rpcwire.rpc.types import (
    ABSENT,
    JSONRPC_VERSION,
    Envelope,
    ErrorObject,
    Request,
    RequestId,
    Response,
)


class ParseError(RpcWireError):
    """Raised when a JSON-RPC message cannot be parsed."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def _loads(data: bytes | str) -> Any:
    if isinstance(data, (bytes, bytearray)):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Invalid encoding: {e}") from e
    try:
        return json.loads(data, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError is a ValueError subclass
        raise ParseError(f"Invalid JSON: {e}") from e


def _dumps(data: dict[str, Any]) -> bytes:
    return json.dumps(data, separators=(",", ":"), allow_nan=False).encode("utf-8")


def is_valid_id(value: Any) -> bool:
    """Return True if value may be used as a JSON-RPC id (null, string or number)."""
    if value is None or isinstance(value, str):
        return True
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def decode_envelope(data: bytes | str) -> Envelope:
    """Decode raw bytes into an unclassified Envelope.

    Member values are surfaced as-is; params and result are wrapped in
    Payload capsules. A JSON value that is not an object decodes to an empty
    envelope, which is neither a request nor a response.

    Raises:
        ParseError: If data is not valid UTF-8 JSON.
    """
    obj = _loads(data)
    if not isinstance(obj, dict):
        return Envelope()

    return Envelope(
        jsonrpc=obj.get("jsonrpc", ABSENT),
        id=obj.get("id", ABSENT),
        method=obj.get("method", ABSENT),
        params=Payload(obj["params"]) if "params" in obj else ABSENT,
        result=Payload(obj["result"]) if "result" in obj else ABSENT,
        error=obj.get("error", ABSENT),
    )


def best_effort_id(envelope: Envelope) -> RequestId:
    """Return the envelope's id if it is usable in a response, else None."""
    if envelope.id is ABSENT or not is_valid_id(envelope.id):
        return None
    return envelope.id


def request_from_envelope(envelope: Envelope) -> Request:
    """Validate an envelope as a JSON-RPC 2.0 request.

    Raises:
        InvalidRequestError: If the envelope is not a well-formed request.
            The error's data names the violated rule.
    """
    if envelope.jsonrpc != JSONRPC_VERSION:
        raise InvalidRequestError(data=f"jsonrpc must be '2.0', got: {envelope.jsonrpc!r}")

    if not envelope.is_request:
        raise InvalidRequestError(data="missing method")

    method = envelope.method
    if not isinstance(method, str):
        raise InvalidRequestError(
            data=f"method must be a string, got: {type(method).__name__}"
        )

    if envelope.id is not ABSENT and not is_valid_id(envelope.id):
        raise InvalidRequestError(
            data=f"id must be string, number, or null, got: {type(envelope.id).__name__}"
        )

    return Request(method=method, params=envelope.params, id=envelope.id)


def parse_request(data: bytes | str) -> Request:
    """Parse raw bytes into a Request.

    Raises:
        ParseError: If data is not valid JSON.
        InvalidRequestError: If the JSON is not a well-formed request.
    """
    return request_from_envelope(decode_envelope(data))


def serialize_request(request: Request) -> bytes:
    """Serialize a Request to compact UTF-8 JSON.

    The id member is omitted for notifications, params when absent.
    """
    data: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION}

    if request.id is not ABSENT:
        data["id"] = request.id

    data["method"] = request.method

    if request.params is not ABSENT:
        data["params"] = request.params.raw

    return _dumps(data)


def serialize_response(response: Response) -> bytes:
    """Serialize a Response to compact UTF-8 JSON.

    Raises:
        ValueError, TypeError: If the result payload is not JSON-serializable.
    """
    data: dict[str, Any] = {
        "jsonrpc": JSONRPC_VERSION,
        "id": response.id,
    }

    if response.error is not None:
        data["error"] = response.error.to_dict()
    else:
        assert isinstance(response.result, Payload)
        data["result"] = response.result.raw

    return _dumps(data)


def make_error_response(request_id: RequestId, error: RpcError) -> Response:
    """Create an error response carrying error's code, message and data."""
    return Response(id=request_id, error=ErrorObject.from_exception(error))


def make_success_response(request_id: RequestId, result: Payload) -> Response:
    """Create a success response."""
    return Response(id=request_id, result=result)


def _parse_error_object(error: Any) -> ErrorObject:
    if not isinstance(error, dict):
        raise ParseError(f"error must be an object, got: {type(error).__name__}")
    code = error.get("code")
    message = error.get("message")
    if isinstance(code, bool) or not isinstance(code, int):
        raise ParseError(f"error code must be an integer, got: {type(code).__name__}")
    if not isinstance(message, str):
        raise ParseError(f"error message must be a string, got: {type(message).__name__}")
    return ErrorObject(code=code, message=message, data=error.get("data"))


def parse_response(data: bytes | str) -> Response:
    """Parse raw bytes into a Response.

    Raises:
        ParseError: If the JSON is invalid or is not a well-formed response.
    """
    envelope = decode_envelope(data)

    if not envelope.is_response:
        raise ParseError("Message is not a JSON-RPC response")

    if envelope.jsonrpc != JSONRPC_VERSION:
        raise ParseError(f"jsonrpc must be '2.0', got: {envelope.jsonrpc!r}")

    if envelope.id is ABSENT:
        raise ParseError("Response must have 'id' field")
    if not is_valid_id(envelope.id):
        raise ParseError(
            f"id must be string, number, or null, got: {type(envelope.id).__name__}"
        )

    has_result = envelope.result is not ABSENT
    has_error = envelope.error is not ABSENT
    if has_result and has_error:
        raise ParseError("Response cannot have both 'result' and 'error'")
    if not has_result and not has_error:
        raise ParseError("Response must have either 'result' or 'error'")

    if has_error:
        return Response(id=envelope.id, error=_parse_error_object(envelope.error))
    return Response(id=envelope.id, result=envelope.result)
