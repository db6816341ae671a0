"""
resilient-decode — unit tests for encoding decoded records back into JSON

File: tests/unit/test_encoding.py

Purpose
- Validate that decoded records encode back into JSON-ready objects.

What this test file should cover
- Omit and null modes for missing and failed fields, including nested records.
- Rejection of unknown modes and unencodable values.
- Round trip of records with an empty failure report, nested ones included.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from resilient_decode import decoders
from resilient_decode.decoding import DecodedRecord, decode_record
from resilient_decode.encoding import EncodeError, encode_record
from resilient_decode.result import Ok
from resilient_decode.spec import optional, record_spec, required


class Tier(Enum):
    FREE = "free"
    PAID = "paid"


ADDRESS = record_spec("Address", required("city", decoders.string))
ACCOUNT = record_spec(
    "Account",
    required("id", decoders.integer),
    required("tier", decoders.enum_of(Tier)),
    optional("created_at", decoders.iso_datetime),
    optional("tags", decoders.array_of(decoders.string)),
    optional("address", decoders.record_of(ADDRESS)),
    optional("note", decoders.string),
    optional("label", decoders.string, encode=lambda value: value.upper()),
)


def _decode(raw: object) -> DecodedRecord:
    outcome = decode_record(ACCOUNT, raw)  # type: ignore[arg-type]
    assert isinstance(outcome, Ok)
    return outcome.value


def test_clean_record_encodes_to_equivalent_json() -> None:
    raw = {
        "id": 1,
        "tier": "paid",
        "created_at": "2026-02-11T08:00:00Z",
        "tags": ["a", "b"],
        "address": {"city": "Lyon"},
        "label": "vip",
    }

    encoded = encode_record(_decode(raw))

    assert encoded == {
        "id": 1,
        "tier": "paid",
        "created_at": "2026-02-11T08:00:00.000000Z",
        "tags": ["a", "b"],
        "address": {"city": "Lyon"},
        "label": "VIP",
    }
    assert json.loads(json.dumps(encoded)) == encoded


def test_omit_mode_drops_missing_and_failed_fields() -> None:
    record = _decode({"id": "x", "tier": "free", "note": None})

    assert encode_record(record) == {"tier": "free"}


def test_null_modes_write_json_null() -> None:
    record = _decode({"id": "x", "tier": "free"})

    assert encode_record(record, none="null", failed="null") == {
        "id": None,
        "tier": "free",
        "created_at": None,
        "tags": None,
        "address": None,
        "note": None,
        "label": None,
    }
    assert encode_record(record, failed="null") == {"id": None, "tier": "free"}


def test_nested_records_reuse_encode_modes() -> None:
    record = _decode({"id": 1, "tier": "free", "address": {"city": 5}})

    assert encode_record(record)["address"] == {}
    assert encode_record(record, failed="null")["address"] == {"city": None}


def test_invalid_mode_is_rejected() -> None:
    with pytest.raises(ValueError, match="none must be one of omit, null"):
        encode_record(_decode({"id": 1, "tier": "free"}), none="drop")  # type: ignore[arg-type]


def test_unencodable_values_raise_encode_error() -> None:
    spec = record_spec("Blob", required("payload", lambda value: Ok(object())))
    outcome = decode_record(spec, {"payload": 1})
    assert isinstance(outcome, Ok)

    with pytest.raises(EncodeError, match="payload: cannot encode value of type object"):
        encode_record(outcome.value)


def test_decoded_datetimes_are_utc() -> None:
    record = _decode({"id": 1, "tier": "free", "created_at": "2026-02-11T09:30:00+01:30"})

    assert record.values()["created_at"] == datetime(2026, 2, 11, 8, 0, tzinfo=UTC)


ROUND_TRIP = record_spec(
    "Profile",
    required("name", decoders.string),
    required("age", decoders.integer),
    optional("nickname", decoders.string),
    optional("scores", decoders.array_of(decoders.number)),
    optional("address", decoders.record_of(ADDRESS)),
)


@settings(max_examples=150, deadline=None)
@given(
    name=st.text(max_size=10),
    age=st.integers(min_value=-(2**53), max_value=2**53),
    nickname=st.none() | st.text(max_size=10),
    scores=st.none() | st.lists(st.floats(allow_nan=False, allow_infinity=False), max_size=4),
    city=st.none() | st.text(max_size=10) | st.integers(),
)
def test_property_round_trip_holds_for_records_with_empty_report(
    name: str,
    age: int,
    nickname: str | None,
    scores: list[float] | None,
    city: str | int | None,
) -> None:
    raw: dict[str, object] = {"name": name, "age": age}
    if nickname is not None:
        raw["nickname"] = nickname
    if scores is not None:
        raw["scores"] = scores
    if city is not None:
        raw["address"] = {"city": city}

    first = decode_record(ROUND_TRIP, raw)
    assert isinstance(first, Ok)
    report = first.value.failure_report
    if isinstance(city, int):
        assert report.fields == ("address.city",)
        assert not first.value.is_complete
        assert encode_record(first.value)["address"] == {}
        return
    assert report.is_empty

    second = decode_record(ROUND_TRIP, encode_record(first.value))

    assert second == first
