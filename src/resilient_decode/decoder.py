"""
Record decoder facade.

Binds one record spec to an accept policy, encode options and a logger:
- ``decode``/``decode_json`` assemble records and raise only for record-shape
  or JSON syntax errors
- ``decode_accepted`` additionally applies the accept policy
- failure reports are logged through ``structlog``; mismatches carry JSON type
  names rather than raw values
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

import structlog

from resilient_decode.decoding import (
    DecodedRecord,
    decode_json,
    decode_record,
)
from resilient_decode.encoding import MissingMode, encode_record
from resilient_decode.errors import RecordNotObject, RecordRejectedError, RecordShapeError
from resilient_decode.report import AcceptPolicy
from resilient_decode.result import Err, JSONValue, Result

if TYPE_CHECKING:
    from resilient_decode.config.loader import DecoderSettings
    from resilient_decode.spec import RecordSpec


class RecordDecoder:
    """Decode records of one type and apply a caller-chosen accept policy."""

    def __init__(
        self,
        spec: RecordSpec,
        *,
        policy: AcceptPolicy | str = AcceptPolicy.CLEAN,
        encode_none: MissingMode = "omit",
        encode_failed: MissingMode = "omit",
        log_failure_reports: bool = True,
        logger: Any | None = None,
    ) -> None:
        self._spec = spec
        self._policy = AcceptPolicy(policy)
        self._encode_none: MissingMode = encode_none
        self._encode_failed: MissingMode = encode_failed
        self._log_failure_reports = log_failure_reports
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        spec: RecordSpec,
        settings: DecoderSettings,
        *,
        logger: Any | None = None,
    ) -> RecordDecoder:
        return cls(
            spec,
            policy=settings.accept_policy,
            encode_none=settings.encode_none,
            encode_failed=settings.encode_failed,
            log_failure_reports=settings.log_failure_reports,
            logger=logger,
        )

    @property
    def spec(self) -> RecordSpec:
        return self._spec

    @property
    def policy(self) -> AcceptPolicy:
        return self._policy

    def decode(self, raw: JSONValue) -> DecodedRecord:
        return self._finish(decode_record(self._spec, raw))

    def decode_json(self, payload: str | bytes | bytearray) -> DecodedRecord:
        return self._finish(decode_json(self._spec, payload))

    def accepts(self, record: DecodedRecord) -> bool:
        return self._policy.accepts(record)

    def decode_accepted(self, raw: JSONValue) -> DecodedRecord:
        """Decode ``raw`` and raise ``RecordRejectedError`` when the policy rejects it."""

        record = self.decode(raw)
        if not self.accepts(record):
            self._logger.warning(
                "record_rejected",
                record_type=self._spec.name,
                policy=self._policy.value,
                failed_fields=list(record.failure_report.fields),
            )
            raise RecordRejectedError(
                record.failure_report,
                record_type=self._spec.name,
                policy=self._policy.value,
            )
        return record

    def encode(self, record: DecodedRecord) -> dict[str, JSONValue]:
        return encode_record(record, none=self._encode_none, failed=self._encode_failed)

    def _finish(self, outcome: Result[DecodedRecord]) -> DecodedRecord:
        if isinstance(outcome, Err):
            error = cast(RecordNotObject, outcome.error)
            self._logger.warning(
                "record_not_object",
                record_type=self._spec.name,
                found=error.found,
            )
            raise RecordShapeError(error, record_type=self._spec.name)

        record = outcome.value
        report = record.failure_report
        if report and self._log_failure_reports:
            self._logger.info(
                "record_decoded_with_failures",
                record_type=self._spec.name,
                failure_count=len(report),
                failures=report.to_dict(),
            )
        return record


__all__ = ["RecordDecoder"]
