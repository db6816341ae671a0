"""
resilient-decode — unit tests for observability logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate structured JSON/text logging and the structlog bridge used by the
  record decoder.

What this test file should cover
- JSON line validity and extra-field capture.
- structlog events landing in the package logger's sinks.
- Level filtering and idempotent shutdown.

Non-functional requirements
- Deterministic and non-flaky.
"""

from __future__ import annotations

import io
import json
import logging
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
import structlog

from resilient_decode import decoders
from resilient_decode.config.loader import DecoderSettings
from resilient_decode.decoder import RecordDecoder
from resilient_decode.observability.logging import (
    LoggingConfig,
    get_active_logging_handle,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)
from resilient_decode.spec import record_spec, required

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _cleanup_logging() -> Iterator[None]:
    yield
    shutdown_logging()


def _logger_name() -> str:
    return f"resilient_decode.tests.logging.{uuid4().hex}"


def _read_json_lines(text: str) -> list[dict[str, object]]:
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def test_json_logging_writes_extra_fields_to_file(tmp_path: Path) -> None:
    logger_name = _logger_name()
    log_path = tmp_path / "logs" / "decode.jsonl"
    handle = setup_structured_logging(
        LoggingConfig(logger_name=logger_name, log_path=log_path, log_to_stream=False)
    )

    logging.getLogger(logger_name).info(
        "record decoded",
        extra={"record_type": "Person", "failures": ({"field": "age"},), "ratio": float("nan")},
    )
    shutdown_logging(handle)

    parsed = _read_json_lines(log_path.read_text(encoding="utf-8"))
    assert len(parsed) == 1
    first = parsed[0]
    assert first["level"] == "INFO"
    assert first["logger"] == logger_name
    assert first["message"] == "record decoded"
    assert first["fields"] == {
        "record_type": "Person",
        "failures": [{"field": "age"}],
        "ratio": "<non-finite>",
    }
    assert str(first["timestamp"]).endswith("Z")
    assert handle.is_shutdown


def test_text_format_renders_key_value_pairs() -> None:
    logger_name = _logger_name()
    stream = io.StringIO()
    setup_structured_logging(
        LoggingConfig(logger_name=logger_name, log_format="text", stream=stream)
    )

    logging.getLogger(logger_name).warning("rejected", extra={"policy": "clean", "count": 2})
    shutdown_logging()

    assert stream.getvalue().strip() == f"WARNING {logger_name}: rejected count=2 policy=clean"


def test_level_filtering_drops_lower_levels() -> None:
    logger_name = _logger_name()
    stream = io.StringIO()
    setup_structured_logging(LoggingConfig(logger_name=logger_name, level="WARNING", stream=stream))

    logger = logging.getLogger(logger_name)
    logger.info("hidden")
    logger.error("shown")
    shutdown_logging()

    messages = [line["message"] for line in _read_json_lines(stream.getvalue())]
    assert messages == ["shown"]


def test_structlog_events_are_routed_through_stdlib_sinks() -> None:
    logger_name = _logger_name()
    stream = io.StringIO()
    setup_structured_logging(LoggingConfig(logger_name=logger_name, stream=stream))

    structlog.get_logger(f"{logger_name}.child").info("budget_checked", remaining=3)
    shutdown_logging()

    parsed = _read_json_lines(stream.getvalue())
    assert parsed == [
        {
            "fields": {"remaining": 3},
            "level": "INFO",
            "logger": f"{logger_name}.child",
            "message": "budget_checked",
            "timestamp": parsed[0]["timestamp"],
        }
    ]


def test_setup_logging_wires_record_decoder_events() -> None:
    stream = io.StringIO()
    setup_logging(DecoderSettings(), stream=stream)
    spec = record_spec(
        "Person",
        required("name", decoders.string),
        required("age", decoders.integer),
    )

    RecordDecoder(spec).decode({"name": "garric", "age": "33"})
    shutdown_logging()

    parsed = _read_json_lines(stream.getvalue())
    assert [line["message"] for line in parsed] == ["record_decoded_with_failures"]
    fields = parsed[0]["fields"]
    assert isinstance(fields, dict)
    assert fields["record_type"] == "Person"
    assert fields["failure_count"] == 1
    assert fields["failures"] == [
        {
            "field": "age",
            "required": True,
            "kind": "type_mismatch",
            "path": "age",
            "expected": "integer",
            "found": "string",
        }
    ]


def test_setup_replaces_previous_handle_and_shutdown_is_idempotent() -> None:
    first = setup_structured_logging(
        LoggingConfig(logger_name=_logger_name(), stream=io.StringIO())
    )
    second = setup_structured_logging(
        LoggingConfig(logger_name=_logger_name(), stream=io.StringIO())
    )

    assert first.is_shutdown
    assert get_active_logging_handle() is second

    shutdown_logging()
    shutdown_logging()

    assert second.is_shutdown
    assert get_active_logging_handle() is None


def test_unknown_format_and_level_are_rejected() -> None:
    with pytest.raises(ValueError, match="unsupported log format"):
        setup_structured_logging(LoggingConfig(logger_name=_logger_name(), log_format="xml"))
    with pytest.raises(ValueError, match="unsupported logging level"):
        setup_structured_logging(LoggingConfig(logger_name=_logger_name(), level="LOUD"))
