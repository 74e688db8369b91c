"""Structured JSON logging for playground runs.

Records carry the run context added by ``ContextFilter`` and, inside a
traced call, the ids of the active OpenTelemetry span. Configuration goes
through ``logging.config.dictConfig``.
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from opentelemetry import trace

from playground.common.exceptions import PlaygroundError
from playground.logging.filters import RUN_CONTEXT_FIELDS


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class CustomJsonFormatter(logging.Formatter):
    """One JSON object per record, with run context, span ids and error codes."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in RUN_CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            entry["trace_id"] = format(span_context.trace_id, "032x")
            entry["span_id"] = format(span_context.span_id, "016x")

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
            error = record.exc_info[1]
            if isinstance(error, PlaygroundError):
                entry["error_code"] = error.error_code.value
                entry["error_details"] = error.details

        return json.dumps(entry, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    """Send playground logs to stdout as JSON.

    Args:
        level: Root log level, defaults to the ``log_level`` setting
    """
    if level is None:
        from playground.settings import get_settings
        level = get_settings().log_level
    level = level.upper()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "playground_json": {"()": CustomJsonFormatter},
        },
        "filters": {
            "playground_context": {"()": "playground.logging.filters.ContextFilter"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "playground_json",
                "filters": ["playground_context"],
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
    })
