"""
resilient-decode — decode error taxonomy and exception hierarchy.

File: src/resilient_decode/errors.py

Purpose
- Define the per-field failure variants stored as data inside decoded records.
- Define the exceptions raised at the few boundaries that fail loudly.

Functional requirements
- Per-field variants carry the field name and an optional sub-path so nested
  failures can be reported with a dotted path.
- Record-shape, projection and spec-definition failures are distinct classes.

Non-functional requirements
- All variants are frozen and comparable so decoded records compare by value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from resilient_decode.report import FailureReport


@dataclass(frozen=True, slots=True)
class DecodeError:
    """Base for every decode failure variant."""

    field: str

    @property
    def kind(self) -> str:
        return _KIND_NAMES.get(type(self), type(self).__name__)

    @property
    def path(self) -> str:
        location = getattr(self, "location", "")
        if not self.field:
            return location.lstrip(".")
        return f"{self.field}{location}"

    def describe(self) -> str:
        return f"{self.path or '<root>'}: {self.kind}"

    def at(self, field: str) -> DecodeError:
        """Return a copy bound to ``field``, keeping any other existing field as a sub-path.

        An error already bound to ``field`` with no sub-path is returned unchanged.
        """

        if not self.field:
            return replace(self, field=field)
        if self.field == field and not getattr(self, "location", ""):
            return self
        return self.nested(field)

    def nested(self, segment: str) -> DecodeError:
        """Return a copy with ``segment`` prepended to the path."""

        if not hasattr(self, "location"):
            return replace(self, field=segment)
        return replace(self, field=segment, location=_join_location(self.field, self.location))

    def to_dict(self) -> dict[str, str]:
        payload = {"kind": self.kind, "path": self.path}
        payload.update(self._details())
        return payload

    def _details(self) -> dict[str, str]:
        return {}


@dataclass(frozen=True, slots=True)
class KeyMissing(DecodeError):
    """Required key absent from the raw object."""

    location: str = ""

    def describe(self) -> str:
        return f"{self.path}: missing required field"


@dataclass(frozen=True, slots=True)
class NullForRequired(DecodeError):
    """Required key present with a JSON null value."""

    location: str = ""

    def describe(self) -> str:
        return f"{self.path}: null is not allowed for a required field"


@dataclass(frozen=True, slots=True)
class TypeMismatch(DecodeError):
    """Raw JSON type does not match what the field decoder expects."""

    expected: str = ""
    found: str = ""
    location: str = ""

    def describe(self) -> str:
        return f"{self.path or '<root>'}: expected {self.expected}, got {self.found}"

    def _details(self) -> dict[str, str]:
        return {"expected": self.expected, "found": self.found}


@dataclass(frozen=True, slots=True)
class Custom(DecodeError):
    """Value had the right shape but failed a validation rule."""

    message: str = ""
    location: str = ""

    def describe(self) -> str:
        return f"{self.path or '<root>'}: {self.message}"

    def _details(self) -> dict[str, str]:
        return {"message": self.message}


@dataclass(frozen=True, slots=True)
class RecordNotObject(DecodeError):
    """The record container itself is not a JSON object."""

    expected: str = "object"
    found: str = ""

    def describe(self) -> str:
        return f"<record>: expected {self.expected}, got {self.found}"

    def _details(self) -> dict[str, str]:
        return {"expected": self.expected, "found": self.found}


_KIND_NAMES: dict[type[DecodeError], str] = {
    KeyMissing: "key_missing",
    NullForRequired: "null_for_required",
    TypeMismatch: "type_mismatch",
    Custom: "custom",
    RecordNotObject: "record_not_object",
}


def _join_location(head: str, tail: str) -> str:
    if not head:
        return tail
    if head.startswith("["):
        return f"{head}{tail}"
    return f".{head}{tail}"


def mismatch(expected: str, found: str) -> TypeMismatch:
    """Unbound type mismatch; the field decoder attaches the field name."""

    return TypeMismatch(field="", expected=expected, found=found)


def invalid(message: str) -> Custom:
    """Unbound validation failure; the field decoder attaches the field name."""

    return Custom(field="", message=message)


class ResilientDecodeError(Exception):
    """Root of every exception raised by resilient-decode."""


class RecordShapeError(ResilientDecodeError, ValueError):
    """Raised when a record is not an object and no per-field recovery is possible."""

    def __init__(self, error: RecordNotObject, *, record_type: str = "") -> None:
        self.error = error
        self.record_type = record_type
        prefix = f"{record_type}: " if record_type else ""
        super().__init__(f"{prefix}expected {error.expected}, got {error.found}")


class JSONSyntaxError(ResilientDecodeError, ValueError):
    """Raised when raw text is not valid JSON; happens before any record decoding."""


class FieldAbsentOrFailed(ResilientDecodeError, LookupError):
    """Raised when projecting a declared field that resolved to a failure."""

    def __init__(self, field: str, error: DecodeError) -> None:
        self.field = field
        self.error = error
        super().__init__(error.describe())


class UndeclaredFieldError(ResilientDecodeError, LookupError):
    """Raised when code asks for a field its record spec never declared."""

    def __init__(self, field: str, *, record_type: str) -> None:
        self.field = field
        self.record_type = record_type
        super().__init__(f"{record_type} declares no field {field!r}")


class SpecDefinitionError(ResilientDecodeError, ValueError):
    """Raised when a field or record spec is malformed."""


class RecordRejectedError(ResilientDecodeError, ValueError):
    """Raised when an accept policy rejects a decoded record."""

    def __init__(self, report: FailureReport, *, record_type: str, policy: str) -> None:
        self.report = report
        self.record_type = record_type
        self.policy = policy
        if not report.entries:
            rendered = "no failures"
        else:
            rendered = "\n".join(f"- {entry.error.describe()}" for entry in report.entries)
        super().__init__(f"{record_type} rejected by {policy!r} policy:\n{rendered}")


__all__ = [
    "Custom",
    "DecodeError",
    "FieldAbsentOrFailed",
    "JSONSyntaxError",
    "KeyMissing",
    "NullForRequired",
    "RecordNotObject",
    "RecordRejectedError",
    "RecordShapeError",
    "ResilientDecodeError",
    "SpecDefinitionError",
    "TypeMismatch",
    "UndeclaredFieldError",
    "invalid",
    "mismatch",
]
