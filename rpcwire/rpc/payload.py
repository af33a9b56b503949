"""Payload capsules for params and result values.

The codec never types params or result. It wraps the undecoded JSON value in
a Payload, and the consumer that knows the target type (the dispatcher for
params, the caller for results) binds it with Payload.decode(shape).

Shapes are anything pydantic can build a TypeAdapter for: builtins, typing
constructs, dataclasses, TypedDicts and BaseModel subclasses. A resolved
Shape (or a prebuilt TypeAdapter) is accepted as well so the registry can
validate a type once at registration time and reuse it for every request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticUndefinedAnnotation, PydanticUserError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from rpcwire.core.errors import RpcWireError


class PayloadError(RpcWireError):
    """Raised when a payload cannot be decoded into, or encoded from, a shape.

    Attributes:
        errors: pydantic validation error details, when available.
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(message)


@dataclass(frozen=True)
class Shape:
    """A declared type together with the TypeAdapter built for it.

    Attributes:
        type: The declared type, or None when built from a bare TypeAdapter.
        name: Display name used in error messages.
        adapter: The adapter validating and serializing values of type.
    """

    type: Any
    name: str
    adapter: TypeAdapter[Any]


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)


def resolve_shape(shape: Any) -> Shape:
    """Resolve a type, TypeAdapter or Shape into a Shape.

    Raises:
        PayloadError: If pydantic cannot generate a schema for shape.
    """
    if isinstance(shape, Shape):
        return shape
    if isinstance(shape, TypeAdapter):
        return Shape(type=None, name="TypeAdapter", adapter=shape)
    try:
        adapter = TypeAdapter(shape)
    except (PydanticUserError, PydanticUndefinedAnnotation) as e:
        raise PayloadError(f"unsupported payload type {_type_name(shape)}: {e}") from e
    return Shape(type=shape, name=_type_name(shape), adapter=adapter)


def encode_value(value: Any, shape: Any = None) -> Any:
    """Convert a Python value into a JSON-compatible value.

    Args:
        value: The value to encode.
        shape: Optional declared type (or Shape/TypeAdapter). When given, the
            value is serialized through that type's schema; otherwise pydantic
            infers the encoding from the runtime value.

    Raises:
        PayloadError: If the value is not serializable.
    """
    try:
        if shape is None:
            return to_jsonable_python(value)
        # A value that does not match its declared type is an error, not a warning
        return resolve_shape(shape).adapter.dump_python(value, mode="json", warnings="error")
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise PayloadError(f"cannot encode {type(value).__name__}: {e}") from e


class Payload:
    """An undecoded params/result value.

    The wrapped value is the JSON tree produced by the envelope parser. It is
    immutable from the caller's point of view: decode() validates a copy into
    the requested shape and never mutates the raw value.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: Any) -> None:
        self._raw = raw

    @classmethod
    def from_value(cls, value: Any, shape: Any = None) -> Payload:
        """Encode a Python value into a capsule ready for the wire.

        Raises:
            PayloadError: If the value is not serializable.
        """
        return cls(encode_value(value, shape))

    @property
    def raw(self) -> Any:
        """The JSON value as parsed from (or destined for) the wire."""
        return self._raw

    @property
    def is_null(self) -> bool:
        """True if the payload is JSON null."""
        return self._raw is None

    def decode(self, shape: Any = Any) -> Any:
        """Validate the payload into shape.

        Args:
            shape: Target type, Shape or TypeAdapter. Defaults to Any (raw JSON value).

        Returns:
            The decoded value.

        Raises:
            PayloadError: If the payload does not match shape.
        """
        resolved = resolve_shape(shape)
        try:
            return resolved.adapter.validate_python(self._raw)
        except ValidationError as e:
            raise PayloadError(
                f"payload does not match {resolved.name}: {e.error_count()} validation error(s)",
                errors=e.errors(include_url=False, include_context=False),
            ) from e

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Payload):
            return NotImplemented
        return self._raw == other._raw

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Payload({self._raw!r})"
