"""Result and decoded-field variants shared by decoders and the record assembler."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

from resilient_decode.errors import DecodeError

T = TypeVar("T")

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    error: DecodeError

    @property
    def is_ok(self) -> bool:
        return False


Result: TypeAlias = Ok[T] | Err


@dataclass(frozen=True, slots=True)
class Value(Generic[T]):
    """A field that decoded; ``None`` for an absent or null optional field."""

    value: T

    @property
    def failed(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Failed:
    """A field whose decode failure was captured instead of raised."""

    error: DecodeError

    @property
    def failed(self) -> bool:
        return True


DecodedField: TypeAlias = Value[T] | Failed


def json_type_name(value: object) -> str:
    """Return the JSON type name used in mismatch descriptions."""

    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


__all__ = [
    "DecodedField",
    "Err",
    "Failed",
    "JSONScalar",
    "JSONValue",
    "Ok",
    "Result",
    "Value",
    "json_type_name",
]
