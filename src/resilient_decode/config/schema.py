"""
resilient-decode — settings schema and validation.

File: src/resilient_decode/config/schema.py

Purpose
- Define default decoder settings and strict validation rules.

What should be included in this file
- Validation rules for required sections, types and enums.
- Deterministic deep-merge helpers used by the loader.

Functional requirements
- Validate settings payloads and return structured issues (field path + message).

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from resilient_decode.encoding import MISSING_MODES
from resilient_decode.errors import ResilientDecodeError
from resilient_decode.report import ACCEPT_POLICY_NAMES

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")


class DecodingSection(TypedDict):
    accept_policy: Literal["clean", "optional_only", "any"]
    encode_none: Literal["omit", "null"]
    encode_failed: Literal["omit", "null"]


class LoggingSection(TypedDict):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    format: Literal["json", "text"]
    log_failure_reports: bool


class SettingsPayload(TypedDict):
    decoding: DecodingSection
    logging: LoggingSection


DEFAULT_SETTINGS: Final[SettingsPayload] = {
    "decoding": {
        "accept_policy": "clean",
        "encode_none": "omit",
        "encode_failed": "omit",
    },
    "logging": {
        "level": "INFO",
        "format": "json",
        "log_failure_reports": True,
    },
}


@dataclass(frozen=True, slots=True)
class SettingsValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class SettingsValidationResult:
    """Validation result with normalized settings when no issues were found."""

    settings: dict[str, Any] | None
    issues: tuple[SettingsValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.settings is not None and not self.issues


class SettingsValidationError(ResilientDecodeError, ValueError):
    """Raised when strict settings validation fails."""

    def __init__(self, issues: Sequence[SettingsValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid settings:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[SettingsValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(SettingsValidationIssue(path=path, message=message))

    def items(self) -> tuple[SettingsValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_settings() -> SettingsPayload:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_SETTINGS)


def merge_settings(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_settings(settings: Mapping[str, object] | object) -> SettingsValidationResult:
    """Validate settings and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    if not isinstance(settings, Mapping):
        issues.add("<root>", f"expected object, got {type(settings).__name__}")
        return SettingsValidationResult(settings=None, issues=issues.items())

    _reject_unknown_keys(settings, {"decoding", "logging"}, "", issues)
    _require_keys(settings, {"decoding", "logging"}, "", issues)

    out: dict[str, Any] = {}
    decoding = settings.get("decoding")
    if decoding is not None:
        out["decoding"] = _validate_decoding(decoding, "decoding", issues)
    logging_section = settings.get("logging")
    if logging_section is not None:
        out["logging"] = _validate_logging(logging_section, "logging", issues)

    if issues.has_issues:
        return SettingsValidationResult(settings=None, issues=issues.items())
    return SettingsValidationResult(settings=out, issues=())


def assert_valid_settings(settings: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate settings and raise ``SettingsValidationError`` on failure."""

    result = validate_settings(settings)
    if result.settings is None:
        raise SettingsValidationError(result.issues)
    return result.settings


def _validate_decoding(value: object, path: str, issues: _IssueCollector) -> dict[str, Any]:
    section = _as_object(value, path, issues)
    if section is None:
        return {}
    allowed = {"accept_policy", "encode_none", "encode_failed"}
    _reject_unknown_keys(section, allowed, path, issues)
    _require_keys(section, allowed, path, issues)

    out: dict[str, Any] = {}
    if "accept_policy" in section:
        out["accept_policy"] = _as_enum(
            section["accept_policy"],
            _join(path, "accept_policy"),
            issues,
            allowed_values=ACCEPT_POLICY_NAMES,
        )
    for key in ("encode_none", "encode_failed"):
        if key in section:
            out[key] = _as_enum(
                section[key], _join(path, key), issues, allowed_values=MISSING_MODES
            )
    return out


def _validate_logging(value: object, path: str, issues: _IssueCollector) -> dict[str, Any]:
    section = _as_object(value, path, issues)
    if section is None:
        return {}
    allowed = {"level", "format", "log_failure_reports"}
    _reject_unknown_keys(section, allowed, path, issues)
    _require_keys(section, allowed, path, issues)

    out: dict[str, Any] = {}
    if "level" in section:
        level = section["level"]
        normalized = level.strip().upper() if isinstance(level, str) else level
        out["level"] = _as_enum(
            normalized, _join(path, "level"), issues, allowed_values=LOG_LEVELS
        )
    if "format" in section:
        out["format"] = _as_enum(
            section["format"], _join(path, "format"), issues, allowed_values=LOG_FORMATS
        )
    if "log_failure_reports" in section:
        out["log_failure_reports"] = _as_bool(
            section["log_failure_reports"], _join(path, "log_failure_reports"), issues
        )
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in sorted(value):
        item = value[key]
        out[key] = _deep_copy_mapping(item) if isinstance(item, Mapping) else copy.deepcopy(item)
    return out


__all__ = [
    "DEFAULT_SETTINGS",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "SettingsPayload",
    "SettingsValidationError",
    "SettingsValidationIssue",
    "SettingsValidationResult",
    "assert_valid_settings",
    "default_settings",
    "merge_settings",
    "validate_settings",
]
