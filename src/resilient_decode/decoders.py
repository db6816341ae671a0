"""
resilient-decode — value decoders for field specs.

File: src/resilient_decode/decoders.py

Purpose
- Provide the ``decode`` callables a FieldSpec carries: primitives, arrays,
  enums, nested records and validating/mapping combinators.

Functional requirements
- Every decoder returns ``Ok`` or ``Err`` and never raises for bad input.
- Errors are returned unbound (empty field name); the field decoder binds them.
- Type mismatches name the expected and found JSON types.
- Failure messages never echo the raw value, so reports are safe to log.

Non-functional requirements
- Decoders are plain functions or closures with no shared mutable state.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

from resilient_decode.decoding import decode_record
from resilient_decode.errors import invalid, mismatch
from resilient_decode.result import Err, JSONValue, Ok, Result, json_type_name
from resilient_decode.spec import RecordSpec

U = TypeVar("U")
TEnum = TypeVar("TEnum", bound=Enum)

Decoder = Callable[[JSONValue], Result[Any]]


def string(value: JSONValue) -> Result[str]:
    if not isinstance(value, str):
        return Err(mismatch("string", json_type_name(value)))
    return Ok(value)


def non_empty_string(value: JSONValue) -> Result[str]:
    if not isinstance(value, str):
        return Err(mismatch("string", json_type_name(value)))
    if not value.strip():
        return Err(invalid("must not be empty"))
    return Ok(value)


def integer(value: JSONValue) -> Result[int]:
    if isinstance(value, bool):
        return Err(mismatch("integer", "boolean"))
    if isinstance(value, int):
        return Ok(value)
    # 33.0 is an integer on the wire.
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return Ok(int(value))
    return Err(mismatch("integer", json_type_name(value)))


def number(value: JSONValue) -> Result[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return Err(mismatch("number", json_type_name(value)))
    if not math.isfinite(value):
        return Err(invalid("must be finite"))
    return Ok(value)


def boolean(value: JSONValue) -> Result[bool]:
    if isinstance(value, bool):
        return Ok(value)
    return Err(mismatch("boolean", json_type_name(value)))


def json_object(value: JSONValue) -> Result[dict[str, JSONValue]]:
    if not isinstance(value, Mapping):
        return Err(mismatch("object", json_type_name(value)))
    parsed: dict[str, JSONValue] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            return Err(invalid(f"object key must be string, got {type(key).__name__}"))
        parsed[key] = item
    return Ok(parsed)


def any_json(value: JSONValue) -> Result[JSONValue]:
    return Ok(value)


def iso_datetime(value: JSONValue) -> Result[datetime]:
    """Decode an ISO-8601 timestamp with an explicit offset (``Z`` allowed) to UTC."""

    if not isinstance(value, str):
        return Err(mismatch("ISO-8601 string", json_type_name(value)))
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return Err(invalid("not an ISO-8601 datetime"))
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        return Err(invalid("datetime must be timezone-aware"))
    return Ok(parsed.astimezone(UTC))


def encode_datetime(value: datetime) -> str:
    return value.astimezone(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


def array_of(item: Decoder) -> Decoder:
    """Decode a JSON array whose elements all decode with ``item``.

    The first failing element fails the whole field; its index is kept in the
    error path (``tags[2]``).
    """

    def decode(value: JSONValue) -> Result[tuple[Any, ...]]:
        if not isinstance(value, (list, tuple)):
            return Err(mismatch("array", json_type_name(value)))
        parsed: list[Any] = []
        for index, element in enumerate(value):
            outcome = item(element)
            if isinstance(outcome, Err):
                return Err(outcome.error.nested(f"[{index}]"))
            parsed.append(outcome.value)
        return Ok(tuple(parsed))

    return decode


def enum_of(choices: type[TEnum] | Iterable[str]) -> Decoder:
    """Decode a string restricted to a fixed set of values.

    With an ``Enum`` subclass the decoded value is the enum member.
    """

    if isinstance(choices, type) and issubclass(choices, Enum):
        enum_type = choices
        allowed = tuple(str(member.value) for member in enum_type)
    else:
        enum_type = None
        allowed = tuple(choices)
    rendered = ", ".join(sorted(allowed))

    def decode(value: JSONValue) -> Result[Any]:
        if not isinstance(value, str):
            return Err(mismatch("string", json_type_name(value)))
        if value not in allowed:
            return Err(invalid(f"value not in allowed set; expected one of: {rendered}"))
        if enum_type is not None:
            return Ok(enum_type(value))
        return Ok(value)

    return decode


def bounded(
    inner: Decoder,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
) -> Decoder:
    """Wrap a numeric decoder with inclusive bounds."""

    def decode(value: JSONValue) -> Result[Any]:
        outcome = inner(value)
        if isinstance(outcome, Err):
            return outcome
        if minimum is not None and outcome.value < minimum:
            return Err(invalid(f"must be >= {minimum}"))
        if maximum is not None and outcome.value > maximum:
            return Err(invalid(f"must be <= {maximum}"))
        return outcome

    return decode


def validated(inner: Decoder, predicate: Callable[[Any], bool], message: str) -> Decoder:
    """Run ``predicate`` on the decoded value; a false result becomes a custom failure."""

    def decode(value: JSONValue) -> Result[Any]:
        outcome = inner(value)
        if isinstance(outcome, Err):
            return outcome
        if not predicate(outcome.value):
            return Err(invalid(message))
        return outcome

    return decode


def mapped(inner: Decoder, transform: Callable[[Any], U]) -> Decoder:
    """Apply ``transform``; ``TypeError`` or ``ValueError`` becomes a custom failure."""

    def decode(value: JSONValue) -> Result[U]:
        outcome = inner(value)
        if isinstance(outcome, Err):
            return outcome
        try:
            return Ok(transform(outcome.value))
        except (TypeError, ValueError) as exc:
            return Err(invalid(f"transform raised {type(exc).__name__}"))

    return decode


def record_of(spec: RecordSpec) -> Decoder:
    """Decode a nested object with its own record spec.

    The nested record is assembled field-by-field as well. Its failures do not
    fail the outer field; they surface in the outer record's report under
    dotted paths (``address.zip``).
    """

    def decode(value: JSONValue) -> Result[Any]:
        outcome = decode_record(spec, value)
        if isinstance(outcome, Err):
            return Err(mismatch("object", json_type_name(value)))
        return outcome

    return decode


__all__ = [
    "Decoder",
    "any_json",
    "array_of",
    "boolean",
    "bounded",
    "encode_datetime",
    "enum_of",
    "integer",
    "iso_datetime",
    "json_object",
    "json_type_name",
    "mapped",
    "non_empty_string",
    "number",
    "record_of",
    "string",
    "validated",
]
