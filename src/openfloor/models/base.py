"""
Common base for Open Floor value objects.

Every model is frozen, accepts both snake_case keywords and the camelCase
wire keys, and renders a canonical wire mapping through :meth:`to_object`.
pydantic's own errors are translated into :class:`openfloor.errors.ValidationError`
so callers only ever see the package's exception types.
"""

import json
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Annotated, Any, ClassVar, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    SerializerFunctionWrapHandler,
    WrapSerializer,
    model_serializer,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from openfloor.errors import OpenFloorError, ParseError, UnknownEventTypeError, ValidationError

M = TypeVar("M", bound="OpenFloorModel")
V = TypeVar("V")

_MESSAGE_PREFIXES = ("Value error, ", "Assertion failed, ", "Input should be ")

# How many OpenFloorModel constructions are in progress in this context.
_construction_depth: ContextVar[int] = ContextVar("openfloor_construction_depth", default=0)


def _non_empty(value: str) -> str:
    if not value:
        raise ValueError("non-empty string")
    return value


NonEmptyStr = Annotated[str, AfterValidator(_non_empty)]


def _freeze(value: dict[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(value)


def _thaw(value: Mapping[str, Any], handler: SerializerFunctionWrapHandler) -> Any:
    return handler(dict(value))


# Read-only string-keyed mapping; renders as a plain object.
FrozenDict = Annotated[dict[str, V], AfterValidator(_freeze), WrapSerializer(_thaw)]


def _format_loc(loc: tuple[Any, ...]) -> str:
    # Locations follow the key the caller used; report wire names.
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
            continue
        part = to_camel(part) if "_" in str(part) else str(part)
        path += f".{part}" if path else part
    return path


def translate_error(model_name: str, exc: PydanticValidationError) -> OpenFloorError:
    """Map the first pydantic error onto the package's exception types."""
    errors = exc.errors(include_url=False)
    for error in errors:
        if error["type"] == "union_tag_invalid":
            return UnknownEventTypeError(error.get("ctx", {}).get("tag"))

    error = errors[0]
    loc = _format_loc(error["loc"])
    field = f"{model_name}.{loc}" if loc else model_name
    if error["type"] == "missing":
        return ValidationError(field, None, "required field")
    message = error["msg"]
    for prefix in _MESSAGE_PREFIXES:
        if message.startswith(prefix):
            message = message[len(prefix):]
    return ValidationError(field, error.get("input"), message)


@contextmanager
def _translated_errors(model_name: str) -> Iterator[None]:
    """Translate pydantic errors once, for the outermost model under construction.

    pydantic builds nested models through their own ``__init__``; those keep
    raising pydantic's error so the parent reports the full location.
    """
    depth = _construction_depth.get()
    token = _construction_depth.set(depth + 1)
    try:
        yield
    except PydanticValidationError as exc:
        if depth:
            raise
        raise translate_error(model_name, exc) from exc
    finally:
        _construction_depth.reset(token)


class OpenFloorModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    # Fields left out of the wire mapping when their value is empty.
    omit_if_empty: ClassVar[tuple[str, ...]] = ()

    def __init__(self, **data: Any) -> None:
        with _translated_errors(type(self).__name__):
            super().__init__(**data)

    @classmethod
    def from_object(cls: type[M], data: Mapping[str, Any]) -> M:
        """Rebuild an instance (and its children) from a decoded JSON mapping."""
        if not isinstance(data, Mapping):
            raise ValidationError(cls.__name__, data, "mapping")
        with _translated_errors(cls.__name__):
            return cls.model_validate(data)

    @classmethod
    def from_json(cls: type[M], text: str) -> M:
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise ParseError(f"Failed to parse JSON: {exc}") from exc
        return cls.from_object(data)

    def to_object(self) -> dict[str, Any]:
        """Canonical wire mapping: camelCase keys, absent optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_object())

    @model_serializer(mode="wrap")
    def _serialize_wire(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        fields = type(self).model_fields
        for name in self.omit_if_empty:
            for key in (name, fields[name].alias):
                if key in data and not data[key]:
                    del data[key]
        return data
