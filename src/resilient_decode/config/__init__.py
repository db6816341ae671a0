"""
resilient-decode settings package public API.

File: src/resilient_decode/config/__init__.py

Purpose
- Export settings loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``resilient_decode.toml`` + ``RESILIENT_DECODE_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from resilient_decode.config.loader import (
    DEFAULT_SETTINGS_FILE,
    ENV_PREFIX,
    DecoderSettings,
    SettingsLoadError,
    dump_settings,
    load_settings,
)
from resilient_decode.config.schema import (
    DEFAULT_SETTINGS,
    SettingsValidationError,
    SettingsValidationIssue,
    SettingsValidationResult,
    assert_valid_settings,
    default_settings,
    merge_settings,
    validate_settings,
)

__all__ = [
    "DEFAULT_SETTINGS",
    "DEFAULT_SETTINGS_FILE",
    "ENV_PREFIX",
    "DecoderSettings",
    "SettingsLoadError",
    "SettingsValidationError",
    "SettingsValidationIssue",
    "SettingsValidationResult",
    "assert_valid_settings",
    "default_settings",
    "dump_settings",
    "load_settings",
    "merge_settings",
    "validate_settings",
]
