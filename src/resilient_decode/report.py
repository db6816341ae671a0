"""Failure reports attached to decoded records, and caller-side accept policies."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from resilient_decode.errors import DecodeError

if TYPE_CHECKING:
    from resilient_decode.decoding import DecodedRecord


@dataclass(frozen=True, slots=True)
class FailureEntry:
    """One failed field: its name, the captured error, and whether it was required."""

    field: str
    error: DecodeError
    required: bool

    def to_dict(self) -> dict[str, object]:
        return {"field": self.field, "required": self.required, **self.error.to_dict()}


@dataclass(frozen=True, slots=True)
class FailureReport:
    """Ordered failures; order follows the record spec's declarations, nested paths included."""

    entries: tuple[FailureEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(entry.field for entry in self.entries)

    @property
    def required_failures(self) -> tuple[FailureEntry, ...]:
        return tuple(entry for entry in self.entries if entry.required)

    @property
    def optional_failures(self) -> tuple[FailureEntry, ...]:
        return tuple(entry for entry in self.entries if not entry.required)

    def error_for(self, field: str) -> DecodeError | None:
        for entry in self.entries:
            if entry.field == field:
                return entry.error
        return None

    def pairs(self) -> tuple[tuple[str, DecodeError], ...]:
        return tuple((entry.field, entry.error) for entry in self.entries)

    def to_dict(self) -> list[dict[str, object]]:
        return [entry.to_dict() for entry in self.entries]

    def __iter__(self) -> Iterator[FailureEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)


class AcceptPolicy(StrEnum):
    """Caller-side decision over a decoded record's failure report.

    - ``clean``: accept only records with no failures.
    - ``optional_only``: accept when every failure is on an optional field.
    - ``any``: accept every assembled record.
    """

    CLEAN = "clean"
    OPTIONAL_ONLY = "optional_only"
    ANY = "any"

    def accepts(self, record: DecodedRecord) -> bool:
        report = record.failure_report
        if self is AcceptPolicy.CLEAN:
            return report.is_empty
        if self is AcceptPolicy.OPTIONAL_ONLY:
            return not report.required_failures
        return True


ACCEPT_POLICY_NAMES: tuple[str, ...] = tuple(item.value for item in AcceptPolicy)


__all__ = [
    "ACCEPT_POLICY_NAMES",
    "AcceptPolicy",
    "FailureEntry",
    "FailureReport",
]
