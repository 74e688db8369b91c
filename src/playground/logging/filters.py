"""Logging filters for context injection.

This module provides filters that inject context variables into log records,
enabling correlation of logs emitted by the loader, the sandbox and the
formatter with the run that triggered them.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Optional

from playground.__version__ import __version__

pipeline_var: ContextVar[Optional[str]] = ContextVar("pipeline", default=None)
run_token_var: ContextVar[Optional[int]] = ContextVar("run_token", default=None)
dialect_var: ContextVar[Optional[str]] = ContextVar("dialect", default=None)

# Record attributes written by ContextFilter and emitted by the JSON formatter.
RUN_CONTEXT_FIELDS = ("pipeline", "run_token", "dialect", "playground_version")


class ContextFilter(logging.Filter):
    """Logging filter that adds run context variables to log records.

    Context variables are copied into each asyncio task when it is created,
    so every record logged while a run executes carries that run's token.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context variables to the log record.

        Args:
            record: Log record to enhance

        Returns:
            Always True (doesn't filter out any records)
        """
        setattr(record, "pipeline", pipeline_var.get())
        setattr(record, "run_token", run_token_var.get())
        setattr(record, "dialect", dialect_var.get())
        setattr(record, "playground_version", __version__)
        return True


def set_run_context(
    pipeline: Optional[str] = None,
    run_token: Optional[int] = None,
    dialect: Optional[str] = None,
) -> None:
    """Set run context variables."""
    if pipeline is not None:
        pipeline_var.set(pipeline)
    if run_token is not None:
        run_token_var.set(run_token)
    if dialect is not None:
        dialect_var.set(dialect)


def clear_run_context() -> None:
    """Clear all run context variables."""
    pipeline_var.set(None)
    run_token_var.set(None)
    dialect_var.set(None)
