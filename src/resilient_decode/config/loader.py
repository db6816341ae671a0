"""
resilient-decode — settings loader.

File: src/resilient_decode/config/loader.py

Purpose
- Load effective decoder settings from defaults, a TOML file, env vars, and
  explicit overrides.

What should be included in this file
- Precedence logic: overrides > env (RESILIENT_DECODE_) > file > defaults.
- TOML loading via ``tomllib``.
- Deterministic environment variable mapping and coercion.

Functional requirements
- Reject invalid settings via schema validation.
- Raise ``SettingsLoadError`` with the offending env var or file named.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Literal

from resilient_decode.config.schema import (
    assert_valid_settings,
    default_settings,
    merge_settings,
)
from resilient_decode.errors import ResilientDecodeError
from resilient_decode.report import AcceptPolicy

DEFAULT_SETTINGS_FILE: Final[str] = "resilient_decode.toml"
ENV_PREFIX: Final[str] = "RESILIENT_DECODE_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


@dataclass(frozen=True, slots=True)
class _Binding:
    path: tuple[str, ...]
    value_type: Literal["str", "bool"]


@dataclass(frozen=True, slots=True)
class DecoderSettings:
    """Typed view of validated settings."""

    accept_policy: AcceptPolicy = AcceptPolicy.CLEAN
    encode_none: Literal["omit", "null"] = "omit"
    encode_failed: Literal["omit", "null"] = "omit"
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_failure_reports: bool = True

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> DecoderSettings:
        validated = assert_valid_settings(payload)
        decoding = validated["decoding"]
        logging_section = validated["logging"]
        return cls(
            accept_policy=AcceptPolicy(decoding["accept_policy"]),
            encode_none=decoding["encode_none"],
            encode_failed=decoding["encode_failed"],
            log_level=logging_section["level"],
            log_format=logging_section["format"],
            log_failure_reports=logging_section["log_failure_reports"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "decoding": {
                "accept_policy": self.accept_policy.value,
                "encode_none": self.encode_none,
                "encode_failed": self.encode_failed,
            },
            "logging": {
                "level": self.log_level,
                "format": self.log_format,
                "log_failure_reports": self.log_failure_reports,
            },
        }


class SettingsLoadError(ResilientDecodeError, ValueError):
    """Raised when settings cannot be loaded or overrides cannot be coerced."""


def load_settings(
    settings_path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> DecoderSettings:
    """Load effective settings with precedence: overrides > env > file > defaults."""

    resolved_path = _resolve_settings_path(settings_path)
    env_map = dict(os.environ if environ is None else environ)

    file_payload = _load_toml_file(resolved_path, required=settings_path is not None)

    merged = merge_settings(default_settings(), file_payload)
    merged = assert_valid_settings(merged)
    merged = merge_settings(merged, _collect_env_overrides(merged, env_map))
    merged = merge_settings(merged, _materialize_overrides(overrides or {}))
    return DecoderSettings.from_mapping(merged)


def dump_settings(settings: DecoderSettings) -> str:
    """Return a deterministic JSON dump of effective settings."""

    return json.dumps(settings.to_dict(), sort_keys=True, separators=(",", ":"))


def _resolve_settings_path(settings_path: str | Path | None) -> Path:
    if settings_path is None:
        return (Path.cwd() / DEFAULT_SETTINGS_FILE).resolve()
    return Path(settings_path).expanduser().resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise SettingsLoadError(f"settings file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise SettingsLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise SettingsLoadError(f"unable to read settings file {path}: {exc}") from exc

    return parsed


def _collect_env_overrides(
    settings: Mapping[str, object], environ: Mapping[str, str]
) -> dict[str, Any]:
    bindings = _build_bindings(settings)
    overrides: dict[str, Any] = {}
    for env_name in sorted(bindings):
        raw = environ.get(env_name)
        if raw is None:
            continue
        binding = bindings[env_name]
        value = _coerce_env(raw, binding.value_type, env_name, binding.path)
        _set_nested(overrides, binding.path, value)
    return overrides


def _build_bindings(settings: Mapping[str, object]) -> dict[str, _Binding]:
    bindings: dict[str, _Binding] = {}
    for section_name in sorted(settings):
        section = settings[section_name]
        if not isinstance(section, Mapping):
            continue
        for key in sorted(section):
            value = section[key]
            kind: Literal["str", "bool"] = "bool" if isinstance(value, bool) else "str"
            path = (section_name, key)
            bindings[_env_name_for_path(path)] = _Binding(path=path, value_type=kind)
    return bindings


def _env_name_for_path(path: tuple[str, ...]) -> str:
    return ENV_PREFIX + "_".join(part.upper() for part in path)


def _coerce_env(
    raw: str,
    value_type: Literal["str", "bool"],
    env_name: str,
    path: tuple[str, ...],
) -> object:
    value = raw.strip()
    if value_type == "str":
        return value

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise SettingsLoadError(
        f"{env_name} -> {'.'.join(path)} must be a boolean (true/false/1/0/yes/no/on/off)"
    )


def _materialize_overrides(overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key in sorted(overrides):
        value = overrides[key]
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise SettingsLoadError(f"invalid override key {key!r}")
        if isinstance(value, Mapping):
            payload = merge_settings(payload, _nest(path, value))
            continue
        _set_nested(payload, path, value)
    return payload


def _nest(path: tuple[str, ...], value: object) -> dict[str, Any]:
    out: dict[str, Any] = {}
    _set_nested(out, path, value)
    return out


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        child = cursor.get(part)
        if not isinstance(child, dict):
            child = {}
            cursor[part] = child
        cursor = child
    cursor[path[-1]] = value


__all__ = [
    "DEFAULT_SETTINGS_FILE",
    "ENV_PREFIX",
    "DecoderSettings",
    "SettingsLoadError",
    "dump_settings",
    "load_settings",
]
