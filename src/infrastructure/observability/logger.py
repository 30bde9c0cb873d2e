"""Structured JSON logging with redaction of sensitive context fields.

Every call builds one record and hands it to the sink synchronously. The
default sink forwards the JSON line to the stdlib logger ``app.audit`` at the
matching level, so collectors can filter on severity.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import UTC, datetime
from typing import Any, Callable, Literal, Mapping

LogLevel = Literal["debug", "info", "warn", "error"]
LogSink = Callable[[LogLevel, str], None]

LOGGER_NAME = "app.audit"
REDACTED = "[REDACTED]"

# Substrings matched against the lowercased key
SENSITIVE_KEYS = (
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "cookie",
    "jwt",
    "sessionid",
    "session_id",
    "bearer",
)

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_audit = logging.getLogger(LOGGER_NAME)
_audit.setLevel(logging.DEBUG)


def is_sensitive_key(key: str) -> bool:
    lower_key = key.lower()
    return any(sensitive in lower_key for sensitive in SENSITIVE_KEYS)


def sanitize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``context`` with sensitive values redacted.

    Only nested dicts are walked. Lists, datetimes, exceptions and other
    objects are passed through as opaque leaves.
    """
    sanitized: dict[str, Any] = {}
    for key, value in context.items():
        if is_sensitive_key(str(key)):
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_context(value)
        else:
            sanitized[key] = value
    return sanitized


def iso_timestamp(moment: datetime | None = None) -> str:
    moment = moment or datetime.now(UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def current_environment() -> str:
    return os.getenv("ENV") or "development"


def stdlib_sink(level: LogLevel, line: str) -> None:
    _audit.log(_LEVELS[level], line)


class StructuredLogger:
    """
    JSON logger with a fixed record shape.

    Each call renders one record and hands the serialized line to the sink,
    the stdlib ``app.audit`` logger unless another sink is given.
    """

    def __init__(self, sink: LogSink | None = None, environment: str | None = None) -> None:
        self._sink = sink or stdlib_sink
        self._environment = environment

    @property
    def environment(self) -> str:
        return self._environment or current_environment()

    def should_log(self, level: LogLevel) -> bool:
        """Debug records are dropped in production; everything else is kept."""
        return not (level == "debug" and self.environment == "production")

    def build_record(
        self,
        level: LogLevel,
        *,
        source: str,
        message: str,
        code: str,
        context: Mapping[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> dict[str, Any]:
        """
        Assemble one log record.

        Args:
            level: Record level
            source: Component that emits the record, e.g. ``module:function``
            message: Human readable summary
            code: Error or outcome code
            context: Extra fields; sensitive keys are redacted and the
                mapping itself is left untouched
            error: Exception whose stack and type name are attached

        Returns:
            Dictionary with timestamp, level, source, message, code and
            environment, plus context, stack and errorName when present
        """
        record: dict[str, Any] = {
            "timestamp": iso_timestamp(),
            "level": level,
            "source": source,
            "message": message,
            "code": str(code),
            "environment": self.environment,
        }
        if context:
            record["context"] = sanitize_context(context)
        if isinstance(error, BaseException):
            record["stack"] = "".join(traceback.format_exception(error)).rstrip()
            record["errorName"] = type(error).__name__
        return record

    def _log(self, level: LogLevel, **params: Any) -> None:
        if not self.should_log(level):
            return
        record = self.build_record(level, **params)
        self._sink(level, json.dumps(record, default=str))

    def debug(
        self, *, source: str, message: str, code: str, context: Mapping[str, Any] | None = None
    ) -> None:
        self._log("debug", source=source, message=message, code=code, context=context)

    def info(
        self, *, source: str, message: str, code: str, context: Mapping[str, Any] | None = None
    ) -> None:
        self._log("info", source=source, message=message, code=code, context=context)

    def warn(
        self,
        *,
        source: str,
        message: str,
        code: str,
        context: Mapping[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> None:
        self._log("warn", source=source, message=message, code=code, context=context, error=error)

    def error(
        self,
        *,
        source: str,
        message: str,
        code: str,
        context: Mapping[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> None:
        self._log("error", source=source, message=message, code=code, context=context, error=error)


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


def configure_logging() -> None:
    """Send debug/info lines to stdout and warnings/errors to stderr.

    Safe to call more than once; handlers are only installed the first time.
    """
    if any(getattr(h, "_audit_handler", False) for h in _audit.handlers):
        return
    formatter = logging.Formatter("%(message)s")

    out = logging.StreamHandler(sys.stdout)
    out.setLevel(logging.DEBUG)
    out.addFilter(_MaxLevelFilter(logging.INFO))
    out.setFormatter(formatter)

    err = logging.StreamHandler(sys.stderr)
    err.setLevel(logging.WARNING)
    err.setFormatter(formatter)

    for handler in (out, err):
        handler._audit_handler = True  # type: ignore[attr-defined]
        _audit.addHandler(handler)


logger = StructuredLogger()
