"""
resilient-decode — field and record declarations.

File: src/resilient_decode/spec.py

Purpose
- Declare record types as ordered, immutable sequences of field specs.

Functional requirements
- Field names are non-empty and unique within a record.
- Declaration order is preserved; it drives decode and failure-report order.

Non-functional requirements
- Specs are built once and shared read-only between decode calls and threads.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from resilient_decode.errors import SpecDefinitionError
from resilient_decode.result import JSONValue, Result

DecodeFn: TypeAlias = Callable[[JSONValue], Result[Any]]
EncodeFn: TypeAlias = Callable[[Any], JSONValue]


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One named slot of a record and the function that decodes its raw value."""

    name: str
    required: bool
    decode: DecodeFn
    encode: EncodeFn | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise SpecDefinitionError("field name must be a non-empty string")
        if not isinstance(self.required, bool):
            raise SpecDefinitionError(f"{self.name}: required must be a bool")
        if not callable(self.decode):
            raise SpecDefinitionError(f"{self.name}: decode must be callable")
        if self.encode is not None and not callable(self.encode):
            raise SpecDefinitionError(f"{self.name}: encode must be callable")


@dataclass(frozen=True, slots=True)
class RecordSpec:
    """Ordered field declarations that define one record type."""

    name: str
    fields: tuple[FieldSpec, ...]
    _index: dict[str, FieldSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise SpecDefinitionError("record name must be a non-empty string")
        materialized = tuple(self.fields)
        index: dict[str, FieldSpec] = {}
        for item in materialized:
            if not isinstance(item, FieldSpec):
                raise SpecDefinitionError(
                    f"{self.name}: expected FieldSpec, got {type(item).__name__}"
                )
            if item.name in index:
                raise SpecDefinitionError(f"{self.name}: duplicate field {item.name!r}")
            index[item.name] = item
        object.__setattr__(self, "fields", materialized)
        object.__setattr__(self, "_index", index)

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.fields)

    def get_field(self, name: str) -> FieldSpec | None:
        return self._index.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


def required(name: str, decode: DecodeFn, *, encode: EncodeFn | None = None) -> FieldSpec:
    return FieldSpec(name=name, required=True, decode=decode, encode=encode)


def optional(name: str, decode: DecodeFn, *, encode: EncodeFn | None = None) -> FieldSpec:
    return FieldSpec(name=name, required=False, decode=decode, encode=encode)


def record_spec(name: str, *fields: FieldSpec) -> RecordSpec:
    """Shorthand for ``RecordSpec(name, fields)`` with positional field specs."""

    return RecordSpec(name=name, fields=fields)


__all__ = [
    "DecodeFn",
    "EncodeFn",
    "FieldSpec",
    "RecordSpec",
    "optional",
    "record_spec",
    "required",
]
