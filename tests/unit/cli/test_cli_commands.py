"""Unit tests for CLI commands."""

import json

import pytest

from rpcwire.cli.arg_parser import parse_args
from rpcwire.cli.commands import (
    EXIT_CLIENT_ERROR,
    EXIT_OK,
    EXIT_RPC_ERROR,
    build_demo_server,
    cmd_call,
    cmd_notify,
    parse_headers,
    parse_params,
)
from rpcwire.cli.main import run
from rpcwire.config.schema import ClientConfig, ServerConfig
from rpcwire.rpc.client import TransportError
from rpcwire.rpc.transport import LoopbackTransport
from rpcwire.rpc.types import ABSENT


@pytest.fixture
def demo_transport() -> LoopbackTransport:
    """Loopback transport to the demo server's echo and ping methods."""
    return build_demo_server(ServerConfig()).loopback()


class BrokenTransport:
    async def send(self, payload: bytes, *, expect_reply: bool = True) -> bytes:
        raise TransportError("Connection failed: refused")

    async def aclose(self) -> None:
        return None


class TestParsing:
    """Tests for argument helpers."""

    def test_parse_params(self):
        assert parse_params(None) is ABSENT
        assert parse_params("[1, 2]") == [1, 2]
        assert parse_params("null") is None

    def test_parse_params_invalid(self):
        with pytest.raises(ValueError, match="valid JSON"):
            parse_params("{oops")

    def test_parse_headers(self):
        assert parse_headers(["X-A: 1", "X-B:two:parts"]) == {"X-A": "1", "X-B": "two:parts"}
        with pytest.raises(ValueError):
            parse_headers(["no-colon"])

    def test_call_arguments(self):
        args = parse_args(["call", "echo", '"hi"', "--url", "http://h:1/rpc", "-t", "3"])
        assert args.command == "call"
        assert args.method == "echo"
        assert args.params == '"hi"'
        assert args.url == "http://h:1/rpc"
        assert args.timeout == 3.0

    def test_serve_arguments(self):
        args = parse_args(["serve", "--port", "0", "--reject-zero-params"])
        assert args.port == 0
        assert args.reject_zero_params is True
        assert parse_args(["serve"]).reject_zero_params is None


class TestCmdCall:
    """Tests for cmd_call()."""

    @pytest.mark.asyncio
    async def test_success_prints_result(self, demo_transport, capsys):
        code = await cmd_call(ClientConfig(), "echo", '{"a": 1}', transport=demo_transport)
        assert code == EXIT_OK
        assert json.loads(capsys.readouterr().out) == {"a": 1}

    @pytest.mark.asyncio
    async def test_without_params(self, demo_transport, capsys):
        assert await cmd_call(ClientConfig(), "ping", transport=demo_transport) == EXIT_OK
        assert json.loads(capsys.readouterr().out) == "pong"

    @pytest.mark.asyncio
    async def test_rpc_error(self, demo_transport, capsys):
        code = await cmd_call(ClientConfig(), "missing", transport=demo_transport)
        assert code == EXIT_RPC_ERROR
        assert "-32601" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_transport_error(self, capsys):
        code = await cmd_call(ClientConfig(), "echo", "1", transport=BrokenTransport())
        assert code == EXIT_CLIENT_ERROR
        assert "refused" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_bad_params(self, demo_transport, capsys):
        code = await cmd_call(ClientConfig(), "echo", "{oops", transport=demo_transport)
        assert code == EXIT_CLIENT_ERROR
        assert "valid JSON" in capsys.readouterr().err


class TestCmdNotify:
    """Tests for cmd_notify()."""

    @pytest.mark.asyncio
    async def test_notify_prints_nothing(self, demo_transport, capsys):
        assert await cmd_notify(ClientConfig(), "echo", "1", transport=demo_transport) == EXIT_OK
        assert capsys.readouterr().out == ""

    @pytest.mark.asyncio
    async def test_notify_transport_error(self):
        code = await cmd_notify(ClientConfig(), "echo", transport=BrokenTransport())
        assert code == EXIT_CLIENT_ERROR


class TestRun:
    """Tests for the run() entry point."""

    def test_no_command(self, capsys):
        assert run([]) == EXIT_CLIENT_ERROR
        assert "Usage" in capsys.readouterr().out

    def test_invalid_config_file(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{nope", encoding="utf-8")
        assert run(["--config", str(bad), "call", "ping"]) == EXIT_CLIENT_ERROR
        assert "Invalid JSON" in capsys.readouterr().err

    def test_invalid_url_override(self, tmp_path, capsys):
        config = tmp_path / "config.json"
        config.write_text("{}", encoding="utf-8")
        assert run(["--config", str(config), "call", "ping", "--url", "nope"]) == EXIT_CLIENT_ERROR
