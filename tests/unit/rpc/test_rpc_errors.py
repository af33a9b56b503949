"""Unit tests for JSON-RPC error types."""

import pytest

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
    is_reserved_code,
    rpc_error_from,
)


class TestCanonicalErrors:
    """Each protocol error carries its standard code and message."""

    @pytest.mark.parametrize(
        ("cls", "code", "message"),
        [
            (RpcParseError, PARSE_ERROR, "Parse error"),
            (InvalidRequestError, INVALID_REQUEST, "Invalid Request"),
            (MethodNotFoundError, METHOD_NOT_FOUND, "Method not found"),
            (InvalidParamsError, INVALID_PARAMS, "Invalid params"),
            (InternalError, INTERNAL_ERROR, "Internal error"),
        ],
    )
    def test_defaults(self, cls, code, message):
        error = cls()
        assert error.code == code
        assert error.message == message
        assert error.data is None
        assert error.to_dict() == {"code": code, "message": message}

    def test_server_error_uses_given_message(self):
        error = ServerError("disk full")
        assert error.code == SERVER_ERROR == -32000
        assert error.message == "disk full"

    def test_to_dict_includes_data(self):
        error = InvalidParamsError(data={"field": "name"})
        assert error.to_dict() == {
            "code": -32602,
            "message": "Invalid params",
            "data": {"field": "name"},
        }

    def test_equality_by_value(self):
        """Errors compare by code, message and data."""
        assert MethodNotFoundError() == MethodNotFoundError()
        assert InvalidParamsError(data=1) != InvalidParamsError(data=2)


class TestApplicationError:
    """ApplicationError refuses reserved codes."""

    def test_custom_code(self):
        error = ApplicationError(418, "I'm a teapot", {"x": 1})
        assert error.code == 418
        assert error.data == {"x": 1}

    @pytest.mark.parametrize("code", [-32768, -32700, -32601, -32000])
    def test_reserved_code_rejected(self, code):
        with pytest.raises(ValueError, match="reserved"):
            ApplicationError(code, "nope")

    def test_boundaries_outside_reserved_band(self):
        assert not is_reserved_code(-32769)
        assert not is_reserved_code(-31999)
        ApplicationError(-32769, "ok")
        ApplicationError(-31999, "ok")

    def test_non_integer_code_rejected(self):
        with pytest.raises(ValueError):
            ApplicationError(True, "bool is not a code")


class TestRpcErrorFrom:
    """rpc_error_from() picks the class for a decoded code."""

    def test_known_codes(self):
        assert type(rpc_error_from(-32601, "Method not found")) is MethodNotFoundError
        assert type(rpc_error_from(-32000, "oops")) is ServerError

    def test_unknown_reserved_code(self):
        error = rpc_error_from(-32050, "custom reserved")
        assert type(error) is RpcError
        assert error.code == -32050

    def test_application_code(self):
        error = rpc_error_from(1001, "app", {"k": "v"})
        assert isinstance(error, ApplicationError)
        assert error.data == {"k": "v"}
