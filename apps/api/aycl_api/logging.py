"""JSON logging for the API.

Every record gets the request's correlation id, either when it is created
(record factory) or when a handler emits it (filter). Only allow-listed
``extra`` keys are serialized, so payloads, tokens and passwords passed by
mistake never reach the log stream.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from aycl_api.context import get_correlation_id


_MAX_ERROR_LENGTH = 500
_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__)
_ALLOWED_EXTRAS = frozenset(
    {
        "method",
        "path",
        "status_code",
        "duration_ms",
        "code",
        "error",
        "file",
        "action",
        "entity",
        "entity_id",
        "user_id",
        "is_disconnect",
    }
)
_NOISY_LOGGERS = ("uvicorn.access",)

_default_factory = logging.getLogRecordFactory()


def _with_correlation_id(record: logging.LogRecord) -> logging.LogRecord:
    if not getattr(record, "correlation_id", None):
        record.correlation_id = get_correlation_id()
    return record


def _record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    return _with_correlation_id(_default_factory(*args, **kwargs))


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        _with_correlation_id(record)
        return True


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = {
        key: value
        for key, value in record.__dict__.items()
        if key in _ALLOWED_EXTRAS and key not in _STANDARD_ATTRS
    }
    if isinstance(fields.get("error"), str):
        fields["error"] = fields["error"][:_MAX_ERROR_LENGTH]
    return fields


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        fields = _extra_fields(record)
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)
        return json.dumps(
            {
                "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
                "correlation_id": getattr(record, "correlation_id", None),
                "fields": fields,
            },
            default=str,
        )


def configure_logging(level_name: str | None = None) -> None:
    """Route the root logger to stdout as JSON. Safe to call more than once."""
    root = logging.getLogger()
    if getattr(root, "_aycl_configured", False):
        return

    level = logging.getLevelName((level_name or os.getenv("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonLogFormatter())
    handler.addFilter(CorrelationIdFilter())

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    logging.setLogRecordFactory(_record_factory)
    # Requests are already logged by RequestLoggingMiddleware.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    root._aycl_configured = True  # type: ignore[attr-defined]
