"""JSON-RPC 2.0 message types."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Final, Literal, Union

from rpcwire.rpc.errors import RpcError, rpc_error_from
from rpcwire.rpc.payload import Payload

JSONRPC_VERSION: Final = "2.0"


class _Absent(enum.Enum):
    ABSENT = "ABSENT"

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Final = _Absent.ABSENT
"""Marks a member missing from the JSON object (distinct from JSON null)."""

AbsentType = Literal[_Absent.ABSENT]
RequestId = Union[str, int, float, None]


@dataclass(frozen=True)
class Envelope:
    """Raw wire-level JSON-RPC object, before it is classified.

    Every member keeps whatever JSON value the peer sent, or ABSENT. The codec
    does not validate member types; that is the consumer's job.
    """

    jsonrpc: Any = ABSENT
    id: Any = ABSENT
    method: Any = ABSENT
    params: Payload | AbsentType = ABSENT
    result: Payload | AbsentType = ABSENT
    error: Any = ABSENT

    @property
    def is_request(self) -> bool:
        """True if the envelope carries a method (request candidate)."""
        return self.method is not ABSENT

    @property
    def is_response(self) -> bool:
        """True if the envelope has no method but an id, result or error."""
        return self.method is ABSENT and (
            self.id is not ABSENT or self.result is not ABSENT or self.error is not ABSENT
        )


@dataclass(frozen=True)
class ErrorObject:
    """The "error" member of a failed response.

    Attributes:
        code: JSON-RPC error code.
        message: Short description of the error.
        data: Optional additional information (None when absent).
    """

    code: int
    message: str
    data: Any = None

    @classmethod
    def from_exception(cls, error: RpcError) -> ErrorObject:
        return cls(code=error.code, message=error.message, data=error.data)

    def to_exception(self) -> RpcError:
        """Return the RpcError subclass matching this error's code."""
        return rpc_error_from(self.code, self.message, self.data)

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


@dataclass(frozen=True)
class Request:
    """JSON-RPC 2.0 request.

    Attributes:
        method: Name of the method to invoke.
        params: Parameter payload, or ABSENT when the request carries none.
        id: Correlation id. ABSENT means notification (no response expected);
            None is an explicit JSON null id and still gets a response.
        jsonrpc: Protocol version, always "2.0".
    """

    method: str
    params: Payload | AbsentType = ABSENT
    id: RequestId | AbsentType = ABSENT
    jsonrpc: str = JSONRPC_VERSION

    @property
    def is_notification(self) -> bool:
        """True iff the request has no id member."""
        return self.id is ABSENT


@dataclass(frozen=True)
class Response:
    """JSON-RPC 2.0 response.

    Attributes:
        id: Id echoed from the request, or None if it could not be determined.
        result: Result payload (mutually exclusive with error).
        error: Error object if the call failed (mutually exclusive with result).
        jsonrpc: Protocol version, always "2.0".
    """

    id: RequestId
    result: Payload | AbsentType = ABSENT
    error: ErrorObject | None = None
    jsonrpc: str = JSONRPC_VERSION

    def __post_init__(self) -> None:
        if self.error is not None and self.result is not ABSENT:
            raise ValueError("Response cannot have both result and error")
        if self.error is None and self.result is ABSENT:
            raise ValueError("Response must have either result or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def decode_result(self, shape: Any = Any) -> Any:
        """Decode the result payload into shape.

        Raises:
            RpcError: If the response is an error response.
            PayloadError: If the result does not match shape.
        """
        if self.error is not None:
            raise self.error.to_exception()
        assert isinstance(self.result, Payload)
        return self.result.decode(shape)
