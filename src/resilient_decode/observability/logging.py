"""
resilient-decode — structured logging setup.

File: src/resilient_decode/observability/logging.py

Purpose
- Attach JSON-lines or text sinks to the package logger and route structlog
  events through stdlib ``logging`` so both land in the same output.

Functional requirements
- JSON lines carry ``timestamp``, ``level``, ``logger``, ``message`` and the
  event's keyword arguments under ``fields``.
- At most one active setup; a new setup closes the previous sinks.
"""

from __future__ import annotations

import json
import logging
import math
import sys
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Final, TextIO

import structlog

from resilient_decode.decoders import encode_datetime
from resilient_decode.result import JSONValue

if TYPE_CHECKING:
    from resilient_decode.config.loader import DecoderSettings

_DEFAULT_LOGGER_NAME: Final[str] = "resilient_decode"
_NON_FINITE_VALUE: Final[str] = "<non-finite>"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

_ACTIVE_HANDLE_LOCK = threading.Lock()
_ACTIVE_HANDLE: LoggingHandle | None = None


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Where and how the package logger writes."""

    logger_name: str = _DEFAULT_LOGGER_NAME
    level: int | str = "INFO"
    log_format: str = "json"
    stream: TextIO | None = None
    log_path: Path | str | None = None
    log_to_stream: bool = True


class _JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, JSONValue] = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = _event_fields(record)
        if extras:
            line["fields"] = extras
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            line["stack"] = str(record.stack_info)
        return json.dumps(line, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    """``LEVEL logger: message key=value ...``"""

    def format(self, record: logging.LogRecord) -> str:
        parts = [f"{record.levelname} {record.name}: {record.getMessage()}"]
        for key, value in sorted(_event_fields(record).items()):
            rendered = value if isinstance(value, str) else json.dumps(value, sort_keys=True)
            parts.append(f"{key}={rendered}")
        text = " ".join(parts)
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


class LoggingHandle:
    """Sinks installed by one ``setup_structured_logging`` call."""

    def __init__(self, *, logger: logging.Logger, handlers: tuple[logging.Handler, ...]) -> None:
        self.logger = logger
        self._handlers = handlers
        self._lock = threading.Lock()
        self._closed = False

    @property
    def is_shutdown(self) -> bool:
        return self._closed

    def flush(self) -> None:
        for handler in self._handlers:
            handler.flush()

    def shutdown(self) -> None:
        with self._lock:
            if self._closed:
                return
            for handler in self._handlers:
                handler.flush()
                self.logger.removeHandler(handler)
                handler.close()
            self._closed = True


def setup_logging(
    settings: DecoderSettings,
    *,
    stream: TextIO | None = None,
    log_path: Path | str | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Configure logging from the ``[logging]`` settings and return the package logger."""

    config = LoggingConfig(
        logger_name=logger_name,
        level=settings.log_level,
        log_format=settings.log_format,
        stream=stream,
        log_path=log_path,
    )
    return setup_structured_logging(config).logger


def setup_structured_logging(config: LoggingConfig) -> LoggingHandle:
    """Install sinks on ``config.logger_name`` and point structlog at stdlib logging."""

    _close_active_handle()

    level = _resolve_level(config.level)
    formatter: logging.Formatter
    if config.log_format == "json":
        formatter = _JsonLineFormatter()
    elif config.log_format == "text":
        formatter = _TextFormatter()
    else:
        raise ValueError(f"unsupported log format {config.log_format!r}")

    handlers: list[logging.Handler] = []
    if config.log_path is not None:
        path = Path(config.log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    if config.log_to_stream:
        handlers.append(logging.StreamHandler(config.stream or sys.stderr))

    logger = logging.getLogger(config.logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handle = LoggingHandle(logger=logger, handlers=tuple(handlers))
    global _ACTIVE_HANDLE
    with _ACTIVE_HANDLE_LOCK:
        _ACTIVE_HANDLE = handle
    return handle


def shutdown_logging(handle: LoggingHandle | None = None) -> None:
    """Close sinks and restore structlog defaults."""

    target = handle if handle is not None else get_active_logging_handle()
    if target is None:
        return
    target.shutdown()
    structlog.reset_defaults()

    global _ACTIVE_HANDLE
    with _ACTIVE_HANDLE_LOCK:
        if _ACTIVE_HANDLE is target:
            _ACTIVE_HANDLE = None


def get_active_logging_handle() -> LoggingHandle | None:
    with _ACTIVE_HANDLE_LOCK:
        return _ACTIVE_HANDLE


def _close_active_handle() -> None:
    global _ACTIVE_HANDLE
    with _ACTIVE_HANDLE_LOCK:
        previous, _ACTIVE_HANDLE = _ACTIVE_HANDLE, None
    if previous is not None:
        previous.shutdown()


def _resolve_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        level = logging.getLevelNamesMapping().get(value.strip().upper())
        if level is not None:
            return level
    raise ValueError(f"unsupported logging level {value!r}")


def _utc_timestamp(created: float) -> str:
    moment = datetime.fromtimestamp(created, tz=UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _event_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    return {
        key: _to_json(value)
        for key, value in vars(record).items()
        if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
    }


def _to_json(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else _NON_FINITE_VALUE
    if isinstance(value, Enum):
        return _to_json(value.value)
    if isinstance(value, datetime):
        return encode_datetime(value if value.tzinfo else value.replace(tzinfo=UTC))
    if isinstance(value, Mapping):
        return {str(key): _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_json(item) for item in value]
    return repr(value)


__all__ = [
    "LoggingConfig",
    "LoggingHandle",
    "get_active_logging_handle",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
