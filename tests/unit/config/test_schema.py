"""
resilient-decode — unit tests for settings schema validation

File: tests/unit/config/test_schema.py

Purpose
- Validate strict settings schema behavior and structured errors.

What this test file should cover
- Built-in defaults validate successfully.
- Rejects unknown keys, missing keys and invalid enum values with actionable paths.
- Deep merge is deterministic and non-destructive.

Functional requirements
- No network usage.
"""

from __future__ import annotations

import pytest

from resilient_decode.config.schema import (
    DEFAULT_SETTINGS,
    SettingsValidationError,
    assert_valid_settings,
    default_settings,
    merge_settings,
    validate_settings,
)


def _issue_paths(payload: object) -> list[str]:
    result = validate_settings(payload)
    assert not result.is_valid
    return [issue.path for issue in result.issues]


def test_defaults_validate_successfully() -> None:
    result = validate_settings(default_settings())

    assert result.is_valid
    assert result.settings == DEFAULT_SETTINGS


def test_default_settings_returns_independent_copies() -> None:
    first = default_settings()
    first["decoding"]["accept_policy"] = "any"

    assert default_settings()["decoding"]["accept_policy"] == "clean"


def test_unknown_and_missing_keys_are_reported_with_paths() -> None:
    payload = merge_settings(default_settings(), {"decoding": {"strict": True}, "extra": {}})
    del payload["logging"]["format"]

    assert _issue_paths(payload) == ["extra", "decoding.strict", "logging.format"]


def test_invalid_enum_values_name_the_allowed_choices() -> None:
    payload = merge_settings(
        default_settings(),
        {"decoding": {"accept_policy": "lenient"}, "logging": {"level": "TRACE"}},
    )

    result = validate_settings(payload)

    messages = {issue.path: issue.message for issue in result.issues}
    assert messages["decoding.accept_policy"] == (
        "invalid value 'lenient'; expected one of: any, clean, optional_only"
    )
    assert "DEBUG, ERROR, INFO, WARNING" in messages["logging.level"]


def test_log_level_is_case_insensitive() -> None:
    payload = merge_settings(default_settings(), {"logging": {"level": " debug "}})

    assert assert_valid_settings(payload)["logging"]["level"] == "DEBUG"


def test_boolean_fields_reject_strings() -> None:
    payload = merge_settings(default_settings(), {"logging": {"log_failure_reports": "yes"}})

    assert _issue_paths(payload) == ["logging.log_failure_reports"]


def test_non_mapping_root_is_rejected() -> None:
    assert _issue_paths(["decoding"]) == ["<root>"]


def test_assert_valid_settings_renders_every_issue() -> None:
    payload = merge_settings(
        default_settings(),
        {"decoding": {"encode_none": "drop", "encode_failed": 0}},
    )

    with pytest.raises(SettingsValidationError) as excinfo:
        assert_valid_settings(payload)

    rendered = str(excinfo.value)
    assert "- decoding.encode_none: invalid value 'drop'" in rendered
    assert "- decoding.encode_failed: expected string, got int" in rendered
    assert len(excinfo.value.issues) == 2


def test_merge_settings_is_deep_and_does_not_mutate_inputs() -> None:
    base = default_settings()
    overlay = {"logging": {"format": "text"}}

    merged = merge_settings(base, overlay)

    assert merged["logging"] == {"format": "text", "level": "INFO", "log_failure_reports": True}
    assert base["logging"]["format"] == "json"
    assert overlay == {"logging": {"format": "text"}}
