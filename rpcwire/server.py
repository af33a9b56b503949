"""Server facade: one registry, one dispatcher, one HTTP endpoint.

Usage:
    server = Server()

    @server.method()
    async def echo(ctx: CallContext, params: str) -> str:
        return params

    asyncio.run(server.serve())
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from rpcwire.config.schema import ServerConfig
from rpcwire.rpc.dispatcher import Dispatcher
from rpcwire.rpc.http import run_http_server, start_http_server
from rpcwire.rpc.registry import HandlerDescriptor, HandlerRegistry
from rpcwire.rpc.transport import LoopbackTransport

logger = logging.getLogger(__name__)


class Server:
    """Owns a HandlerRegistry and the Dispatcher serving it.

    Handlers may be registered before or while the server is running; a
    registration becomes visible to the next request that looks the method up.
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        registry: HandlerRegistry | None = None,
    ) -> None:
        self._config = config or ServerConfig()
        self._registry = registry if registry is not None else HandlerRegistry()
        self._dispatcher = Dispatcher(
            self._registry,
            reject_zero_params=self._config.reject_zero_params,
        )

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    def register(
        self,
        method: str,
        handler: Callable[..., Any],
        *,
        raises: type[Exception] | tuple[type[Exception], ...] = (Exception,),
    ) -> HandlerDescriptor:
        """Register handler under method. See HandlerRegistry.register()."""
        return self._registry.register(method, handler, raises=raises)

    def method(
        self,
        name: str | None = None,
        *,
        raises: type[Exception] | tuple[type[Exception], ...] = (Exception,),
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of register()."""
        return self._registry.method(name, raises=raises)

    def loopback(self) -> LoopbackTransport:
        """Transport that calls this server in-process, without HTTP."""
        return LoopbackTransport(self._dispatcher)

    async def start(self) -> asyncio.Server:
        """Bind and start accepting connections; the caller owns the returned server."""
        cfg = self._config
        return await start_http_server(
            self._dispatcher,
            host=cfg.host,
            port=cfg.port,
            path=cfg.path,
            max_concurrent=cfg.max_concurrent,
            max_body_size=cfg.max_body_size,
            read_timeout=cfg.read_timeout,
        )

    async def serve(
        self,
        started_event: asyncio.Event | None = None,
        shutdown_event: asyncio.Event | None = None,
    ) -> None:
        """Serve HTTP until cancelled or shutdown_event is set."""
        cfg = self._config
        logger.info("Serving %d method(s): %s", len(self._registry), ", ".join(self._registry.names()))
        await run_http_server(
            self._dispatcher,
            host=cfg.host,
            port=cfg.port,
            path=cfg.path,
            max_concurrent=cfg.max_concurrent,
            max_body_size=cfg.max_body_size,
            read_timeout=cfg.read_timeout,
            started_event=started_event,
            shutdown_event=shutdown_event,
        )
