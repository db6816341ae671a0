"""
resilient-decode — field decoder, record assembler and typed projection.

File: src/resilient_decode/decoding.py

Purpose
- Decode each declared field of a raw object independently and assemble the
  results into a record plus its failure report.

Functional requirements
- ``decode_field`` never raises; every failure becomes ``Failed``.
- ``decode_record`` fails as a whole only when the raw value is not an object.
- Every declared field appears exactly once in the record; undeclared raw keys
  are ignored.
- ``get`` separates data failures from programmer errors.

Non-functional requirements
- Pure functions over immutable specs; safe to call from many threads.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, cast

from resilient_decode.errors import (
    Custom,
    DecodeError,
    FieldAbsentOrFailed,
    JSONSyntaxError,
    KeyMissing,
    NullForRequired,
    RecordNotObject,
    RecordShapeError,
    UndeclaredFieldError,
)
from resilient_decode.report import FailureEntry, FailureReport
from resilient_decode.result import (
    DecodedField,
    Err,
    Failed,
    JSONValue,
    Ok,
    Result,
    Value,
    json_type_name,
)
from resilient_decode.spec import FieldSpec, RecordSpec


@dataclass(frozen=True, slots=True)
class DecodedRecord:
    """Decoded fields of one record, in declaration order."""

    spec: RecordSpec
    fields: tuple[tuple[str, DecodedField[Any]], ...]

    @property
    def record_type(self) -> str:
        return self.spec.name

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields)

    @property
    def failure_report(self) -> FailureReport:
        """Failures of this record and of every record nested inside it.

        A failed field is reported under its name. A failure inside a nested
        record (or an array of records) is reported under its dotted path, e.g.
        ``address.zip`` or ``lines[1].sku``; it counts as required only when
        every field along the path is required.
        """

        entries: list[FailureEntry] = []
        for name, outcome in self.fields:
            field_spec = self.spec.get_field(name)
            required = field_spec.required if field_spec is not None else True
            if isinstance(outcome, Failed):
                entries.append(FailureEntry(field=name, error=outcome.error, required=required))
                continue
            for entry in _nested_failures(outcome.value):
                error = entry.error.nested(name)
                entries.append(
                    FailureEntry(field=error.path, error=error, required=required and entry.required)
                )
        return FailureReport(entries=tuple(entries))

    @property
    def is_complete(self) -> bool:
        return self.failure_report.is_empty

    def field(self, name: str) -> DecodedField[Any]:
        for field_name, outcome in self.fields:
            if field_name == name:
                return outcome
        raise UndeclaredFieldError(name, record_type=self.spec.name)

    def items(self) -> tuple[tuple[str, DecodedField[Any]], ...]:
        return self.fields

    def values(self) -> dict[str, Any]:
        """Return the decoded values of the fields that did not fail."""

        return {
            name: outcome.value for name, outcome in self.fields if isinstance(outcome, Value)
        }

    def __contains__(self, name: object) -> bool:
        return any(field_name == name for field_name, _ in self.fields)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.fields)


def decode_field(spec: FieldSpec, raw_object: Mapping[str, JSONValue]) -> DecodedField[Any]:
    """Decode one declared field out of ``raw_object`` without raising."""

    if spec.name not in raw_object:
        if spec.required:
            return Failed(KeyMissing(spec.name))
        return Value(None)

    raw_value = raw_object[spec.name]
    if raw_value is None:
        if spec.required:
            return Failed(NullForRequired(spec.name))
        return Value(None)

    try:
        outcome = spec.decode(raw_value)
    except Exception as exc:  # noqa: BLE001 - failures never cross the field boundary.
        return Failed(Custom(spec.name, message=f"decoder raised {type(exc).__name__}"))

    if isinstance(outcome, Ok):
        return Value(outcome.value)
    if isinstance(outcome, Err):
        return Failed(outcome.error.at(spec.name))
    return Failed(
        Custom(spec.name, message=f"decoder returned {type(outcome).__name__}, not Ok/Err")
    )


def decode_record(spec: RecordSpec, raw: JSONValue) -> Result[DecodedRecord]:
    """Assemble a record field by field; only a non-object ``raw`` fails the whole call."""

    if not isinstance(raw, Mapping):
        return Err(RecordNotObject(field="", found=json_type_name(raw)))

    decoded = tuple((field_spec.name, decode_field(field_spec, raw)) for field_spec in spec)
    return Ok(DecodedRecord(spec=spec, fields=decoded))


def decode_record_or_raise(spec: RecordSpec, raw: JSONValue) -> DecodedRecord:
    """Like ``decode_record`` but raise ``RecordShapeError`` for a non-object record."""

    outcome = decode_record(spec, raw)
    if isinstance(outcome, Err):
        raise RecordShapeError(cast(RecordNotObject, outcome.error), record_type=spec.name)
    return outcome.value


def decode_json(spec: RecordSpec, payload: str | bytes | bytearray) -> Result[DecodedRecord]:
    """Parse JSON text and decode it; syntax errors raise ``JSONSyntaxError``."""

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise JSONSyntaxError(f"{spec.name}: invalid JSON: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise JSONSyntaxError(f"{spec.name}: payload is not valid UTF-8: {exc}") from exc
    return decode_record(spec, parsed)


def get(record: DecodedRecord, field_name: str) -> Any:
    """Return the decoded value of ``field_name``.

    Raises ``FieldAbsentOrFailed`` when the field failed to decode and
    ``UndeclaredFieldError`` when the record spec never declared it.
    """

    if field_name not in record.spec:
        raise UndeclaredFieldError(field_name, record_type=record.spec.name)
    outcome = record.field(field_name)
    if isinstance(outcome, Failed):
        raise FieldAbsentOrFailed(field_name, outcome.error)
    return outcome.value


def iter_failures(record: DecodedRecord) -> Iterator[tuple[str, DecodeError]]:
    """Yield ``(path, error)`` for every failure, including those in nested records."""

    for entry in record.failure_report:
        yield entry.field, entry.error


def _nested_failures(value: object) -> Iterator[FailureEntry]:
    if isinstance(value, DecodedRecord):
        yield from value.failure_report
    elif isinstance(value, tuple):
        for index, item in enumerate(value):
            for entry in _nested_failures(item):
                error = entry.error.nested(f"[{index}]")
                yield FailureEntry(field=error.path, error=error, required=entry.required)


__all__ = [
    "DecodedRecord",
    "decode_field",
    "decode_json",
    "decode_record",
    "decode_record_or_raise",
    "get",
    "iter_failures",
]
