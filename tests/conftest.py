"""Shared pytest fixtures and configuration for pytest."""

import logging
from dataclasses import dataclass
from typing import Any

import pytest
from pydantic import BaseModel

from rpcwire.core.context import CallContext
from rpcwire.rpc.dispatcher import Dispatcher
from rpcwire.rpc.errors import ApplicationError
from rpcwire.rpc.registry import HandlerRegistry


class Person(BaseModel):
    """Params shape used across dispatcher and client tests."""

    name: str
    age: int = 0


@dataclass
class Greeting:
    text: str


class BusinessError(Exception):
    """Exception type declared in raises= by the test handlers."""


async def echo(ctx: CallContext, params: Any) -> Any:
    return params


async def ping(ctx: CallContext) -> str:
    return "pong"


def add(ctx: CallContext, params: list[int]) -> int:
    return sum(params)


async def greet(ctx: CallContext, params: Person) -> Greeting:
    return Greeting(text=f"Hello, {params.name}!")


async def upper(ctx: CallContext, params: str) -> str:
    return params.upper()


async def fail(ctx: CallContext, params: str) -> str:
    raise BusinessError(params)


async def crash(ctx: CallContext) -> str:
    raise RuntimeError("boom")


async def teapot(ctx: CallContext) -> str:
    raise ApplicationError(418, "I'm a teapot", {"brew": "earl grey"})


async def whoami(ctx: CallContext) -> dict[str, Any]:
    return {"id": ctx.request_id, "method": ctx.method}


def build_registry() -> HandlerRegistry:
    """Registry with the standard test handlers."""
    registry = HandlerRegistry()
    registry.register("echo", echo)
    registry.register("ping", ping)
    registry.register("add", add)
    registry.register("greet", greet)
    registry.register("upper", upper)
    registry.register("fail", fail, raises=(BusinessError,))
    registry.register("crash", crash, raises=(BusinessError,))
    registry.register("teapot", teapot)
    registry.register("whoami", whoami)
    return registry


@pytest.fixture
def registry() -> HandlerRegistry:
    """HandlerRegistry populated with the standard test handlers."""
    return build_registry()


@pytest.fixture
def dispatcher(registry: HandlerRegistry) -> Dispatcher:
    """Dispatcher over the standard test handlers."""
    return Dispatcher(registry)


@pytest.fixture(autouse=True)
def reset_rpcwire_logger():
    """Undo handlers installed by configure_logging() during a test."""
    logger = logging.getLogger("rpcwire")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in saved[0]:
        logger.addHandler(handler)
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
