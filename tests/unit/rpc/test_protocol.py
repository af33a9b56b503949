"""Unit tests for the JSON-RPC envelope codec."""

import json

import pytest

from rpcwire.rpc.errors import InvalidRequestError, MethodNotFoundError
from rpcwire.rpc.payload import Payload
from rpcwire.rpc.protocol import (
    ParseError,
    best_effort_id,
    decode_envelope,
    make_error_response,
    make_success_response,
    parse_request,
    parse_response,
    serialize_request,
    serialize_response,
)
from rpcwire.rpc.types import ABSENT, ErrorObject, Request, Response


class TestDecodeEnvelope:
    """Tests for decode_envelope()."""

    def test_absent_and_null_are_distinct(self):
        """A missing member is ABSENT; an explicit null is None."""
        envelope = decode_envelope(b'{"jsonrpc":"2.0","id":null,"method":"ping"}')
        assert envelope.id is None
        assert envelope.params is ABSENT

        envelope = decode_envelope(b'{"jsonrpc":"2.0","method":"ping"}')
        assert envelope.id is ABSENT

    def test_params_wrapped_in_payload(self):
        envelope = decode_envelope('{"jsonrpc":"2.0","method":"m","params":[1,2],"id":3}')
        assert envelope.params == Payload([1, 2])
        assert envelope.is_request is True
        assert envelope.is_response is False

    def test_null_params_is_a_payload(self):
        envelope = decode_envelope('{"jsonrpc":"2.0","method":"m","params":null}')
        assert isinstance(envelope.params, Payload)
        assert envelope.params.is_null

    def test_invalid_json(self):
        with pytest.raises(ParseError):
            decode_envelope(b"invalid_json")

    def test_invalid_utf8(self):
        with pytest.raises(ParseError, match="encoding"):
            decode_envelope(b'{"method":"\xff"}')

    def test_nan_rejected(self):
        with pytest.raises(ParseError):
            decode_envelope('{"jsonrpc":"2.0","method":"m","params":NaN}')

    def test_non_object_is_empty_envelope(self):
        envelope = decode_envelope(b"[1, 2, 3]")
        assert envelope.is_request is False
        assert envelope.is_response is False

    def test_response_classification(self):
        envelope = decode_envelope('{"jsonrpc":"2.0","id":1,"result":"ok"}')
        assert envelope.is_response is True
        assert envelope.result == Payload("ok")


class TestParseRequest:
    """Tests for parse_request()."""

    def test_valid_request(self):
        request = parse_request('{"jsonrpc":"2.0","method":"echo","params":"hi","id":1}')
        assert request.method == "echo"
        assert request.params == Payload("hi")
        assert request.id == 1
        assert request.is_notification is False

    def test_notification(self):
        request = parse_request('{"jsonrpc":"2.0","method":"log","params":[1]}')
        assert request.is_notification is True

    def test_null_id_is_not_a_notification(self):
        request = parse_request('{"jsonrpc":"2.0","method":"log","id":null}')
        assert request.id is None
        assert request.is_notification is False

    @pytest.mark.parametrize("params", ['"input"', "33", "null", "true", "[]", "{}"])
    def test_any_json_params_accepted(self, params):
        """Params may be any JSON value; the handler's shape decides validity."""
        request = parse_request(f'{{"jsonrpc":"2.0","method":"m","params":{params},"id":1}}')
        assert isinstance(request.params, Payload)

    def test_missing_method(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_request('{"jsonrpc":"2.0","id":1,"params":[]}')
        assert exc_info.value.data == "missing method"

    def test_wrong_version(self):
        with pytest.raises(InvalidRequestError, match="Invalid Request"):
            parse_request('{"jsonrpc":"1.0","method":"m","id":1}')

    def test_missing_version(self):
        with pytest.raises(InvalidRequestError):
            parse_request('{"method":"m","id":1}')

    def test_method_not_string(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_request('{"jsonrpc":"2.0","method":42,"id":1}')
        assert "string" in exc_info.value.data

    @pytest.mark.parametrize("bad_id", ["true", "[1]", '{"a":1}'])
    def test_invalid_id_type(self, bad_id):
        with pytest.raises(InvalidRequestError):
            parse_request(f'{{"jsonrpc":"2.0","method":"m","id":{bad_id}}}')

    def test_fractional_id_accepted(self):
        """Any JSON number is a valid id and is echoed unchanged."""
        request = parse_request('{"jsonrpc":"2.0","method":"m","id":1.5}')
        assert request.id == 1.5
        response = make_success_response(request.id, Payload.from_value(None))
        assert json.loads(serialize_response(response))["id"] == 1.5

    def test_best_effort_id(self):
        assert best_effort_id(decode_envelope('{"id":"abc"}')) == "abc"
        assert best_effort_id(decode_envelope('{"id":true}')) is None
        assert best_effort_id(decode_envelope("{}")) is None


class TestSerialize:
    """Tests for serialize_request() and serialize_response()."""

    def test_serialize_request_field_order(self):
        request = Request(method="echo", params=Payload({"a": 1}), id=7)
        assert serialize_request(request) == (
            b'{"jsonrpc":"2.0","id":7,"method":"echo","params":{"a":1}}'
        )

    def test_serialize_notification_omits_id_and_params(self):
        data = json.loads(serialize_request(Request(method="tick")))
        assert data == {"jsonrpc": "2.0", "method": "tick"}

    def test_serialize_null_id_kept(self):
        data = json.loads(serialize_request(Request(method="m", id=None)))
        assert "id" in data and data["id"] is None

    def test_serialize_success_response(self):
        response = make_success_response(1, Payload({"ok": True}))
        assert serialize_response(response) == b'{"jsonrpc":"2.0","id":1,"result":{"ok":true}}'

    def test_serialize_null_result(self):
        """A null result is still a result member."""
        data = json.loads(serialize_response(make_success_response("a", Payload(None))))
        assert "result" in data and data["result"] is None
        assert "error" not in data

    def test_serialize_error_response(self):
        response = make_error_response(None, MethodNotFoundError())
        data = json.loads(serialize_response(response))
        assert data == {
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": -32601, "message": "Method not found"},
        }

    def test_response_requires_exactly_one_outcome(self):
        with pytest.raises(ValueError):
            Response(id=1)
        with pytest.raises(ValueError):
            Response(id=1, result=Payload(1), error=ErrorObject(-32603, "x"))


class TestParseResponse:
    """Tests for parse_response()."""

    def test_success(self):
        response = parse_response('{"jsonrpc":"2.0","id":1,"result":{"n":42}}')
        assert response.id == 1
        assert response.ok is True
        assert response.decode_result(dict[str, int]) == {"n": 42}

    def test_error(self):
        response = parse_response(
            '{"jsonrpc":"2.0","id":1,"error":{"code":-32601,"message":"Method not found"}}'
        )
        assert response.ok is False
        assert response.error == ErrorObject(code=-32601, message="Method not found")
        with pytest.raises(MethodNotFoundError):
            response.decode_result()

    def test_invalid_json(self):
        with pytest.raises(ParseError, match="Invalid JSON"):
            parse_response("not valid json {")

    def test_missing_id(self):
        with pytest.raises(ParseError, match="id"):
            parse_response('{"jsonrpc":"2.0","result":"ok"}')

    def test_missing_result_and_error(self):
        with pytest.raises(ParseError):
            parse_response('{"jsonrpc":"2.0","id":1}')

    def test_both_result_and_error(self):
        with pytest.raises(ParseError, match="both"):
            parse_response(
                '{"jsonrpc":"2.0","id":1,"result":1,"error":{"code":1,"message":"x"}}'
            )

    def test_request_is_not_a_response(self):
        with pytest.raises(ParseError):
            parse_response('{"jsonrpc":"2.0","id":1,"method":"m"}')

    def test_malformed_error_object(self):
        with pytest.raises(ParseError, match="code"):
            parse_response('{"jsonrpc":"2.0","id":1,"error":{"code":"x","message":"m"}}')
