"""
resilient-decode — unit tests for the record decoder facade

File: tests/unit/test_decoder.py

Purpose
- Validate the RecordDecoder wiring of accept policies, logging and settings.

What this test file should cover
- Structured log events for failure reports, shape errors and rejections.
- Raw field values never reaching the logger.
- Policy selection and construction from settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from resilient_decode import RecordDecoder, decoders
from resilient_decode.config.loader import DecoderSettings
from resilient_decode.errors import JSONSyntaxError, RecordRejectedError, RecordShapeError
from resilient_decode.report import AcceptPolicy
from resilient_decode.result import Value
from resilient_decode.spec import optional, record_spec, required

PERSON = record_spec(
    "Person",
    required("name", decoders.string),
    required("age", decoders.integer),
    optional("email", decoders.non_empty_string),
)


@dataclass(slots=True)
class RecordingLogger:
    events: list[tuple[str, str, dict[str, object]]] = field(default_factory=list)

    def info(self, event: str, **kwargs: object) -> None:
        self.events.append(("info", event, dict(kwargs)))

    def warning(self, event: str, **kwargs: object) -> None:
        self.events.append(("warning", event, dict(kwargs)))


def test_decode_logs_failure_report_without_raw_values() -> None:
    logger = RecordingLogger()
    decoder = RecordDecoder(PERSON, logger=logger)

    record = decoder.decode({"name": "garric", "age": "33"})

    assert record.field("name") == Value("garric")
    assert logger.events == [
        (
            "info",
            "record_decoded_with_failures",
            {
                "record_type": "Person",
                "failure_count": 1,
                "failures": [
                    {
                        "field": "age",
                        "required": True,
                        "kind": "type_mismatch",
                        "path": "age",
                        "expected": "integer",
                        "found": "string",
                    }
                ],
            },
        )
    ]


def test_custom_failures_keep_field_values_out_of_logs() -> None:
    def lookup(value: object) -> object:
        raise KeyError(f"unknown account {value}")

    sensitive = record_spec(
        "Sensitive",
        required("kind", decoders.enum_of(["x"])),
        required("issued_at", decoders.iso_datetime),
        required("account", lookup),
        required("pin", decoders.mapped(decoders.string, int)),
        required("contact", decoders.record_of(PERSON)),
    )
    logger = RecordingLogger()

    with pytest.raises(RecordRejectedError):
        RecordDecoder(sensitive, logger=logger).decode_accepted(
            {
                "kind": "123-45-6789",
                "issued_at": "secret-token",
                "account": "acct-998877",
                "pin": "pin-4321",
                "contact": {"name": "garric", "age": 1, "email": " "},
            }
        )

    logged = repr(logger.events)
    assert [event for _, event, _ in logger.events] == [
        "record_decoded_with_failures",
        "record_rejected",
    ]
    assert "contact.email" in logged
    for raw_value in ("123-45-6789", "secret-token", "acct-998877", "pin-4321", "garric"):
        assert raw_value not in logged


def test_clean_records_and_disabled_reports_do_not_log() -> None:
    logger = RecordingLogger()
    quiet = RecordDecoder(PERSON, log_failure_reports=False, logger=logger)

    RecordDecoder(PERSON, logger=logger).decode({"name": "a", "age": 1})
    quiet.decode({"name": "a", "age": "1"})

    assert logger.events == []


def test_non_object_record_raises_shape_error_and_logs_warning() -> None:
    logger = RecordingLogger()
    decoder = RecordDecoder(PERSON, logger=logger)

    with pytest.raises(RecordShapeError) as excinfo:
        decoder.decode("garric")

    assert excinfo.value.record_type == "Person"
    assert excinfo.value.error.found == "string"
    assert logger.events == [
        ("warning", "record_not_object", {"record_type": "Person", "found": "string"})
    ]


def test_decode_json_parses_text_and_raises_for_syntax_errors() -> None:
    decoder = RecordDecoder(PERSON, logger=RecordingLogger())

    record = decoder.decode_json(b'{"name": "garric", "age": 33, "email": ""}')

    assert record.failure_report.fields == ("email",)
    with pytest.raises(JSONSyntaxError):
        decoder.decode_json("{name: garric}")


@pytest.mark.parametrize(
    ("policy", "raw", "accepted"),
    [
        ("clean", {"name": "a", "age": 1}, True),
        ("clean", {"name": "a", "age": 1, "email": ""}, False),
        ("optional_only", {"name": "a", "age": 1, "email": ""}, True),
        ("optional_only", {"name": "a"}, False),
        ("any", {}, True),
    ],
)
def test_accepts_applies_configured_policy(
    policy: str, raw: dict[str, object], accepted: bool
) -> None:
    decoder = RecordDecoder(PERSON, policy=policy, logger=RecordingLogger())

    assert decoder.policy is AcceptPolicy(policy)
    assert decoder.accepts(decoder.decode(raw)) is accepted


def test_decode_accepted_raises_with_report_and_logs_rejection() -> None:
    logger = RecordingLogger()
    decoder = RecordDecoder(
        PERSON,
        policy=AcceptPolicy.OPTIONAL_ONLY,
        log_failure_reports=False,
        logger=logger,
    )

    assert decoder.decode_accepted({"name": "a", "age": 1, "email": ""}).is_complete is False
    with pytest.raises(RecordRejectedError) as excinfo:
        decoder.decode_accepted({"age": None})

    assert excinfo.value.report.fields == ("name", "age")
    assert excinfo.value.policy == "optional_only"
    assert logger.events == [
        (
            "warning",
            "record_rejected",
            {
                "record_type": "Person",
                "policy": "optional_only",
                "failed_fields": ["name", "age"],
            },
        )
    ]


def test_unknown_policy_is_rejected() -> None:
    with pytest.raises(ValueError):
        RecordDecoder(PERSON, policy="lenient")


def test_from_settings_wires_policy_encoding_and_logging() -> None:
    logger = RecordingLogger()
    settings = DecoderSettings(
        accept_policy=AcceptPolicy.ANY,
        encode_none="null",
        encode_failed="null",
        log_failure_reports=False,
    )
    decoder = RecordDecoder.from_settings(PERSON, settings, logger=logger)

    record = decoder.decode_accepted({"name": "a", "age": "x"})

    assert decoder.spec is PERSON
    assert decoder.encode(record) == {"name": "a", "age": None, "email": None}
    assert logger.events == []
