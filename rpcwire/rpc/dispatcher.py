"""JSON-RPC request dispatcher.

The dispatcher is the server-side protocol layer. It takes the raw bytes of
one request, runs it through parse -> resolve -> decode params -> invoke ->
encode result, and returns the raw bytes of the response (or None for a
notification). Every failure along the way ends in a well-formed error
response; handler exceptions never escape.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any

from pydantic import BaseModel

from rpcwire.core.context import CallContext
from rpcwire.rpc.errors import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    RpcError,
    RpcParseError,
    ServerError,
)
from rpcwire.rpc.payload import Payload, PayloadError
from rpcwire.rpc.protocol import (
    ParseError,
    best_effort_id,
    decode_envelope,
    make_error_response,
    make_success_response,
    request_from_envelope,
    serialize_response,
)
from rpcwire.rpc.registry import HandlerDescriptor, HandlerRegistry
from rpcwire.rpc.types import ABSENT, Request, RequestId, Response

logger = logging.getLogger(__name__)


def is_zero_value(value: Any) -> bool:
    """Return True if value is indistinguishable from "nothing was sent".

    None, False, 0, empty strings and empty containers are zero, as is a
    model or dataclass whose fields are all zero.
    """
    if value is None:
        return True
    if isinstance(value, (bool, int, float, complex, str, bytes)):
        return not value
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if isinstance(value, BaseModel):
        return all(is_zero_value(getattr(value, name)) for name in type(value).model_fields)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return all(is_zero_value(getattr(value, f.name)) for f in dataclasses.fields(value))
    return False


class Dispatcher:
    """Routes JSON-RPC requests to handlers in a HandlerRegistry.

    Requests are independent: the dispatcher holds no per-request state and
    takes no lock, so any number of dispatches may run concurrently.

    Args:
        registry: Where handlers are looked up.
        reject_zero_params: If True, params that decode to a zero value
            (see is_zero_value) are rejected as invalid params, as if they had
            not been sent. Off by default: only missing or undecodable params
            are invalid.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        *,
        reject_zero_params: bool = False,
    ) -> None:
        self._registry = registry
        self._reject_zero_params = reject_zero_params

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    async def handle(self, raw: bytes | str) -> bytes | None:
        """Process one raw request and return the raw response.

        Returns:
            The serialized response, or None when nothing must be written
            back (notifications).
        """
        try:
            envelope = decode_envelope(raw)
        except ParseError as e:
            logger.debug("Parse error: %s", e)
            return self._serialize(make_error_response(None, RpcParseError()))

        try:
            request = request_from_envelope(envelope)
        except InvalidRequestError as e:
            logger.debug("Invalid request: %s", e.data)
            return self._serialize(make_error_response(best_effort_id(envelope), e))

        response = await self.dispatch(request)
        if response is None:
            return None
        return self._serialize(response)

    async def dispatch(self, request: Request) -> Response | None:
        """Dispatch a parsed request to its handler.

        Returns:
            A Response, or None for notifications (requests without id).
        """
        response = await self._dispatch(request)
        if request.is_notification:
            if response.error is not None:
                logger.debug(
                    "Dropping error for notification %s: %s",
                    request.method,
                    response.error.message,
                )
            return None
        return response

    async def _dispatch(self, request: Request) -> Response:
        request_id: RequestId = None if request.id is ABSENT else request.id

        descriptor = self._registry.get(request.method)
        if descriptor is None:
            logger.debug("Method not found: %s", request.method)
            return make_error_response(request_id, MethodNotFoundError())

        args: list[Any] = [CallContext().for_request(request_id, request.method)]
        if descriptor.takes_params:
            try:
                params = self._decode_params(descriptor, request.params)
            except InvalidParamsError as e:
                logger.debug("Invalid params for %s: %s", request.method, e.data)
                return make_error_response(request_id, e)
            if params is not ABSENT:
                args.append(params)

        logger.debug("Invoking %s (id=%r)", request.method, request_id)
        try:
            result = await self._invoke(descriptor, args)
        except RpcError as e:
            return make_error_response(request_id, e)
        except descriptor.raises as e:
            return make_error_response(request_id, ServerError(str(e) or type(e).__name__))
        except Exception as e:
            logger.error(
                "Unexpected error dispatching method '%s': %s",
                request.method,
                e,
                exc_info=True,
            )
            return make_error_response(request_id, InternalError())

        try:
            payload = Payload.from_value(result, descriptor.result_adapter)
        except PayloadError as e:
            logger.warning("Cannot encode result of %s: %s", request.method, e)
            return make_error_response(request_id, InternalError())
        return make_success_response(request_id, payload)

    def _decode_params(self, descriptor: HandlerDescriptor, params: Payload | Any) -> Any:
        """Decode params for descriptor, or return ABSENT to use the handler's default.

        Null params are decoded like any other value. If the declared type
        rejects null and the handler has a default, the default is used.

        Raises:
            InvalidParamsError: If params are missing, undecodable, or (when
                reject_zero_params is set) decode to a zero value.
        """
        if params is ABSENT:
            if not descriptor.param_required:
                return ABSENT
            raise InvalidParamsError(data="missing params")

        try:
            value = params.decode(descriptor.param_adapter)
        except PayloadError as e:
            if params.is_null and not descriptor.param_required:
                return ABSENT
            raise InvalidParamsError(data=e.errors or e.message) from e

        if self._reject_zero_params and descriptor.param_required and is_zero_value(value):
            raise InvalidParamsError(data="params decoded to an empty value")
        return value

    async def _invoke(self, descriptor: HandlerDescriptor, args: list[Any]) -> Any:
        if descriptor.is_async:
            return await descriptor.handler(*args)
        # Plain functions run off the event loop so slow ones don't block other requests
        return await asyncio.to_thread(descriptor.handler, *args)

    @staticmethod
    def _serialize(response: Response) -> bytes:
        try:
            return serialize_response(response)
        except (TypeError, ValueError) as e:
            logger.warning("Cannot serialize response %r: %s", response.id, e)
            error = response.error
            if error is not None and error.data is not None:
                # Unserializable error data from a handler: drop the data, keep code and message
                return serialize_response(
                    Response(id=response.id, error=dataclasses.replace(error, data=None))
                )
            return serialize_response(make_error_response(response.id, InternalError()))

