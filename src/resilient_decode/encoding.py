"""Encode decoded records back into plain JSON value trees."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Final, Literal

from resilient_decode.decoders import encode_datetime
from resilient_decode.decoding import DecodedRecord
from resilient_decode.errors import ResilientDecodeError
from resilient_decode.result import Failed, JSONValue

MissingMode = Literal["omit", "null"]
MISSING_MODES: Final[tuple[str, ...]] = ("omit", "null")


class EncodeError(ResilientDecodeError, ValueError):
    """Raised when a decoded value has no JSON representation."""


def encode_record(
    record: DecodedRecord,
    *,
    none: MissingMode = "omit",
    failed: MissingMode = "omit",
) -> dict[str, JSONValue]:
    """Unwrap a decoded record into a JSON object.

    ``none`` controls optional fields that decoded to ``None``; ``failed``
    controls fields that failed to decode. Each is either dropped (``omit``)
    or written as JSON null (``null``).
    """

    _check_mode("none", none)
    _check_mode("failed", failed)

    out: dict[str, JSONValue] = {}
    for name, outcome in record.fields:
        if isinstance(outcome, Failed):
            if failed == "null":
                out[name] = None
            continue
        if outcome.value is None:
            if none == "null":
                out[name] = None
            continue
        field_spec = record.spec.get_field(name)
        if field_spec is not None and field_spec.encode is not None:
            out[name] = _encode_value(field_spec.encode(outcome.value), name, none, failed)
        else:
            out[name] = _encode_value(outcome.value, name, none, failed)
    return out


def _encode_value(value: object, path: str, none: MissingMode, failed: MissingMode) -> JSONValue:
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EncodeError(f"{path}: float values must be finite")
        return value
    if isinstance(value, DecodedRecord):
        return encode_record(value, none=none, failed=failed)
    if isinstance(value, Enum):
        return _encode_value(value.value, path, none, failed)
    if isinstance(value, datetime):
        return encode_datetime(value)
    if isinstance(value, (list, tuple)):
        return [
            _encode_value(item, f"{path}[{index}]", none, failed)
            for index, item in enumerate(value)
        ]
    if isinstance(value, Mapping):
        out: dict[str, JSONValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodeError(f"{path}: dict keys must be strings")
            out[key] = _encode_value(item, f"{path}.{key}", none, failed)
        return out
    raise EncodeError(f"{path}: cannot encode value of type {type(value).__name__}")


def _check_mode(name: str, mode: str) -> None:
    if mode not in MISSING_MODES:
        raise ValueError(f"{name} must be one of {', '.join(MISSING_MODES)}, got {mode!r}")


__all__ = [
    "EncodeError",
    "MISSING_MODES",
    "MissingMode",
    "encode_record",
]
