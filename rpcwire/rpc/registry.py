"""Handler registry: validates RPC handlers once, at registration time.

A handler is any callable shaped like one of:

    async def ping(ctx: CallContext) -> str: ...
    async def echo(ctx: CallContext, params: EchoParams) -> EchoResult: ...
    def add(ctx: CallContext, params: list[int]) -> int: ...

The first argument is always the CallContext. The optional second argument
receives the request params decoded into its annotated type. The return
annotation is the result type. Errors are raised, never returned.

Everything the dispatcher needs is worked out here and frozen into a
HandlerDescriptor, so a bad handler fails at startup instead of on the first
request that reaches it.
"""

from __future__ import annotations

import enum
import inspect
import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from rpcwire.core.context import CallContext
from rpcwire.core.errors import RpcWireError
from rpcwire.rpc.payload import PayloadError, Shape, resolve_shape

logger = logging.getLogger(__name__)


class RegistrationErrorKind(str, enum.Enum):
    """Which registration rule a handler violated."""

    INVALID_HANDLER = "invalid_handler"
    INVALID_ARITY = "invalid_arity"
    INVALID_CONTEXT_ARG = "invalid_context_arg"
    INVALID_PARAM_TYPE = "invalid_param_type"
    INVALID_RETURN_ARITY = "invalid_return_arity"
    INVALID_RESULT_TYPE = "invalid_result_type"
    INVALID_ERROR_TYPE = "invalid_error_type"


class RegistrationError(RpcWireError):
    """Raised when a handler does not have a valid RPC calling shape.

    Attributes:
        method: The method name being registered.
        kind: The rule that failed.
    """

    def __init__(self, method: str, kind: RegistrationErrorKind, detail: str) -> None:
        self.method = method
        self.kind = kind
        super().__init__(f"cannot register {method!r}: {detail}")


@dataclass(frozen=True)
class HandlerDescriptor:
    """Validated, immutable description of a registered handler.

    Attributes:
        name: Method name the handler is registered under.
        handler: The callable itself.
        takes_params: True if the handler accepts a params argument.
        param_required: True if params must be supplied (no default value).
        param_shape: Declared params type (None without a params argument).
        result_shape: Declared result type.
        param_adapter: Resolved Shape decoding params (None without params).
        result_adapter: Resolved Shape encoding the result.
        is_async: True for coroutine functions.
        raises: Exception types reported to callers as application errors.
    """

    name: str
    handler: Callable[..., Any]
    takes_params: bool
    param_required: bool
    param_shape: Any
    result_shape: Any
    param_adapter: Shape | None
    result_adapter: Shape
    is_async: bool
    raises: tuple[type[Exception], ...]


def _positional_params(
    method: str, sig: inspect.Signature
) -> list[inspect.Parameter]:
    positional: list[inspect.Parameter] = []
    for param in sig.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            raise RegistrationError(
                method,
                RegistrationErrorKind.INVALID_ARITY,
                f"invalid number of args: *args/**kwargs not allowed ({param.name})",
            )
        if param.kind is param.KEYWORD_ONLY:
            if param.default is param.empty:
                raise RegistrationError(
                    method,
                    RegistrationErrorKind.INVALID_ARITY,
                    f"invalid number of args: required keyword-only arg {param.name!r}",
                )
            continue
        positional.append(param)
    return positional


def _is_context_type(hint: Any) -> bool:
    return isinstance(hint, type) and issubclass(hint, CallContext)


def _is_async(handler: Callable[..., Any]) -> bool:
    if inspect.iscoroutinefunction(handler):
        return True
    call = getattr(handler, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


def _is_generator(handler: Callable[..., Any]) -> bool:
    targets = [handler, getattr(handler, "__call__", None)]
    return any(
        t is not None and (inspect.isgeneratorfunction(t) or inspect.isasyncgenfunction(t))
        for t in targets
    )


def _error_types(method: str, raises: Any) -> tuple[type[Exception], ...]:
    """Normalize raises to a tuple of Exception subclasses.

    A single class is accepted the way an except clause accepts one.
    """
    if isinstance(raises, type):
        raises = (raises,)
    try:
        candidates = tuple(raises)
    except TypeError:
        raise RegistrationError(
            method,
            RegistrationErrorKind.INVALID_ERROR_TYPE,
            f"invalid error type: expected Exception subclass or tuple, got {raises!r}",
        ) from None
    for exc_type in candidates:
        if not (isinstance(exc_type, type) and issubclass(exc_type, Exception)):
            raise RegistrationError(
                method,
                RegistrationErrorKind.INVALID_ERROR_TYPE,
                f"invalid error type: expected Exception subclass, got {exc_type!r}",
            )
    return candidates


def inspect_handler(
    method: str,
    handler: Any,
    raises: type[Exception] | tuple[type[Exception], ...] = (Exception,),
) -> HandlerDescriptor:
    """Validate handler and build its descriptor.

    Raises:
        RegistrationError: Naming the first rule the handler violates.
    """
    if not callable(handler):
        raise RegistrationError(
            method,
            RegistrationErrorKind.INVALID_HANDLER,
            f"invalid handler type: expected callable, got {type(handler).__name__}",
        )
    try:
        sig = inspect.signature(handler, eval_str=True)
    except (NameError, SyntaxError) as e:
        raise RegistrationError(
            method,
            RegistrationErrorKind.INVALID_HANDLER,
            f"cannot resolve type annotations: {e}",
        ) from e
    except (TypeError, ValueError) as e:
        raise RegistrationError(
            method,
            RegistrationErrorKind.INVALID_HANDLER,
            f"cannot inspect handler signature: {e}",
        ) from e

    # Rule 1: (ctx) or (ctx, params)
    positional = _positional_params(method, sig)
    if len(positional) not in (1, 2):
        raise RegistrationError(
            method,
            RegistrationErrorKind.INVALID_ARITY,
            f"invalid number of args: expected 1 or 2, got {len(positional)}",
        )

    # Rule 2: first argument is the call context
    ctx_param = positional[0]
    ctx_hint = ctx_param.annotation
    if not _is_context_type(ctx_hint):
        got = "no annotation" if ctx_hint is inspect.Parameter.empty else repr(ctx_hint)
        raise RegistrationError(
            method,
            RegistrationErrorKind.INVALID_CONTEXT_ARG,
            f"invalid first arg type: expected CallContext, got {got}",
        )

    # Rule 3: params type must be decodable
    takes_params = len(positional) == 2
    param_shape: Any = None
    param_adapter: Shape | None = None
    param_required = False
    if takes_params:
        param = positional[1]
        param_shape = Any if param.annotation is param.empty else param.annotation
        param_required = param.default is inspect.Parameter.empty
        try:
            param_adapter = resolve_shape(param_shape)
        except PayloadError as e:
            raise RegistrationError(
                method,
                RegistrationErrorKind.INVALID_PARAM_TYPE,
                f"invalid second arg type: {e.message}",
            ) from e

    # Rule 4: exactly one result value, of a serializable type
    if _is_generator(handler):
        raise RegistrationError(
            method,
            RegistrationErrorKind.INVALID_RETURN_ARITY,
            "invalid number of returns: generators produce a stream, expected one result",
        )
    result_shape = Any if sig.return_annotation is sig.empty else sig.return_annotation
    try:
        result_adapter = resolve_shape(result_shape)
    except PayloadError as e:
        raise RegistrationError(
            method,
            RegistrationErrorKind.INVALID_RESULT_TYPE,
            f"invalid return type: {e.message}",
        ) from e

    error_types = _error_types(method, raises)

    return HandlerDescriptor(
        name=method,
        handler=handler,
        takes_params=takes_params,
        param_required=param_required,
        param_shape=param_shape,
        result_shape=result_shape,
        param_adapter=param_adapter,
        result_adapter=result_adapter,
        is_async=_is_async(handler),
        raises=error_types,
    )


class HandlerRegistry:
    """Method name -> HandlerDescriptor table.

    Writes build a new mapping under a lock and publish it with a single
    reference swap. Reads use whatever mapping is current without locking,
    so lookups never wait on registrations and never see a half-built
    descriptor.
    """

    def __init__(self) -> None:
        self._handlers: Mapping[str, HandlerDescriptor] = MappingProxyType({})
        self._write_lock = threading.Lock()

    def register(
        self,
        method: str,
        handler: Callable[..., Any],
        *,
        raises: type[Exception] | tuple[type[Exception], ...] = (Exception,),
    ) -> HandlerDescriptor:
        """Validate and register handler under method.

        Registering an existing name replaces the previous handler.

        Args:
            method: The RPC method name.
            handler: Callable taking (ctx) or (ctx, params).
            raises: Exception types whose messages are reported to callers as
                application errors (-32000). Other exceptions become internal
                errors.

        Returns:
            The stored descriptor.

        Raises:
            RegistrationError: If handler does not have a valid shape.
        """
        if not isinstance(method, str) or not method:
            raise RegistrationError(
                str(method),
                RegistrationErrorKind.INVALID_HANDLER,
                "method name must be a non-empty string",
            )
        descriptor = inspect_handler(method, handler, raises)

        with self._write_lock:
            updated = dict(self._handlers)
            replaced = method in updated
            updated[method] = descriptor
            self._handlers = MappingProxyType(updated)

        if replaced:
            logger.debug("Replaced handler for method: %s", method)
        else:
            logger.debug(
                "Registered method: %s (params=%s, result=%s)",
                method,
                descriptor.param_shape if descriptor.takes_params else "-",
                descriptor.result_shape,
            )
        return descriptor

    def method(
        self,
        name: str | None = None,
        *,
        raises: type[Exception] | tuple[type[Exception], ...] = (Exception,),
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator to register a function under name (default: its __name__)."""

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.register(name or fn.__name__, fn, raises=raises)
            return fn

        return decorator

    def unregister(self, method: str) -> bool:
        """Remove a method. Returns False if it was not registered."""
        with self._write_lock:
            if method not in self._handlers:
                return False
            updated = dict(self._handlers)
            del updated[method]
            self._handlers = MappingProxyType(updated)
        logger.debug("Unregistered method: %s", method)
        return True

    def get(self, method: str) -> HandlerDescriptor | None:
        """Look up the descriptor for method."""
        return self._handlers.get(method)

    def names(self) -> list[str]:
        """Registered method names, sorted."""
        return sorted(self._handlers)

    def __contains__(self, method: object) -> bool:
        return method in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)
