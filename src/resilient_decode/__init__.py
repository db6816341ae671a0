"""
resilient-decode — package root

File: src/resilient_decode/__init__.py

Purpose
- Decode JSON records field by field so that one bad field never discards the
  rest of the record. Every declared field yields either a value or a captured
  per-field error, and each record carries a failure report.

Functional requirements
- Must not have side effects at import time (no settings loading, no logging init).

Key interfaces
- ``RecordSpec``/``FieldSpec`` declare record shapes; ``decode_record`` and
  ``RecordDecoder`` assemble ``DecodedRecord`` values; ``encode_record`` writes
  them back to JSON-compatible mappings.
"""

from resilient_decode.decoder import RecordDecoder
from resilient_decode.decoding import (
    DecodedRecord,
    decode_field,
    decode_json,
    decode_record,
    decode_record_or_raise,
    get,
    iter_failures,
)
from resilient_decode.encoding import encode_record
from resilient_decode.errors import (
    Custom,
    DecodeError,
    FieldAbsentOrFailed,
    JSONSyntaxError,
    KeyMissing,
    NullForRequired,
    RecordNotObject,
    RecordRejectedError,
    RecordShapeError,
    ResilientDecodeError,
    SpecDefinitionError,
    TypeMismatch,
    UndeclaredFieldError,
)
from resilient_decode.report import AcceptPolicy, FailureEntry, FailureReport
from resilient_decode.result import DecodedField, Err, Failed, Ok, Result, Value
from resilient_decode.spec import FieldSpec, RecordSpec, optional, record_spec, required

__version__ = "0.1.0"

__all__ = [
    "AcceptPolicy",
    "Custom",
    "DecodeError",
    "DecodedField",
    "DecodedRecord",
    "Err",
    "Failed",
    "FailureEntry",
    "FailureReport",
    "FieldAbsentOrFailed",
    "FieldSpec",
    "JSONSyntaxError",
    "KeyMissing",
    "NullForRequired",
    "Ok",
    "RecordDecoder",
    "RecordNotObject",
    "RecordRejectedError",
    "RecordShapeError",
    "RecordSpec",
    "ResilientDecodeError",
    "Result",
    "SpecDefinitionError",
    "TypeMismatch",
    "UndeclaredFieldError",
    "Value",
    "__version__",
    "decode_field",
    "decode_json",
    "decode_record",
    "decode_record_or_raise",
    "encode_record",
    "get",
    "iter_failures",
    "optional",
    "record_spec",
    "required",
]
