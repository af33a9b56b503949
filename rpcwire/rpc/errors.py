"""Structured JSON-RPC 2.0 errors.

RpcError is both the value carried in a response's "error" member and the
exception raised on either side of the wire:

- Handlers raise an RpcError subclass to send a specific error verbatim.
- The client raises the RpcError matching a peer's error response.

Codes -32768..-32000 are reserved for the protocol. Handlers that need their
own codes raise ApplicationError, which refuses codes from the reserved band.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rpcwire.core.errors import RpcWireError

if TYPE_CHECKING:
    from rpcwire.rpc.types import Response


# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000  # Application errors from plain exceptions

RESERVED_MIN = -32768
RESERVED_MAX = -32000


def is_reserved_code(code: int) -> bool:
    """Return True if code lies in the band reserved by JSON-RPC 2.0."""
    return RESERVED_MIN <= code <= RESERVED_MAX


class RpcError(RpcWireError):
    """A JSON-RPC error object, raisable as an exception.

    Attributes:
        code: JSON-RPC error code.
        message: Short human-readable description.
        data: Optional JSON-serializable details.
        response: The Response this error was decoded from (client side only).
    """

    default_code: int = INTERNAL_ERROR
    default_message: str = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        data: Any = None,
        *,
        code: int | None = None,
    ) -> None:
        self.code = self.default_code if code is None else code
        self.data = data
        self.response: Response | None = None
        super().__init__(message if message is not None else self.default_message)

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation of the error object."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RpcError):
            return NotImplemented
        return (self.code, self.message, self.data) == (other.code, other.message, other.data)

    __hash__ = Exception.__hash__


class RpcParseError(RpcError):
    """The envelope was not valid JSON."""

    default_code = PARSE_ERROR
    default_message = "Parse error"


class InvalidRequestError(RpcError):
    """The JSON was valid but not a well-formed request."""

    default_code = INVALID_REQUEST
    default_message = "Invalid Request"


class MethodNotFoundError(RpcError):
    """No handler is registered under the requested name."""

    default_code = METHOD_NOT_FOUND
    default_message = "Method not found"


class InvalidParamsError(RpcError):
    """Params were missing or did not decode into the handler's shape."""

    default_code = INVALID_PARAMS
    default_message = "Invalid params"


class InternalError(RpcError):
    """The handler's result could not be encoded, or the server failed."""

    default_code = INTERNAL_ERROR
    default_message = "Internal error"


class ServerError(RpcError):
    """A handler raised a plain exception."""

    default_code = SERVER_ERROR
    default_message = "Server error"


class ApplicationError(RpcError):
    """Application-defined error with a code outside the reserved band.

    Raises:
        ValueError: If code is in the reserved range -32768..-32000.
    """

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        if isinstance(code, bool) or not isinstance(code, int):
            raise ValueError(f"error code must be an integer, got: {type(code).__name__}")
        if is_reserved_code(code):
            raise ValueError(
                f"error code {code} is reserved for JSON-RPC "
                f"({RESERVED_MIN}..{RESERVED_MAX}); choose a code outside that range"
            )
        super().__init__(message, data, code=code)


_CLASSES_BY_CODE: dict[int, type[RpcError]] = {
    PARSE_ERROR: RpcParseError,
    INVALID_REQUEST: InvalidRequestError,
    METHOD_NOT_FOUND: MethodNotFoundError,
    INVALID_PARAMS: InvalidParamsError,
    INTERNAL_ERROR: InternalError,
    SERVER_ERROR: ServerError,
}


def rpc_error_from(code: int, message: str, data: Any = None) -> RpcError:
    """Build the RpcError subclass that matches a decoded error object.

    Unknown codes inside the reserved band become a plain RpcError; codes
    outside it become ApplicationError.
    """
    cls = _CLASSES_BY_CODE.get(code)
    if cls is not None:
        return cls(message, data)
    if is_reserved_code(code):
        return RpcError(message, data, code=code)
    return ApplicationError(code, message, data)
