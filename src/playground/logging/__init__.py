"""Logging infrastructure for the playground.

This module provides structured logging with JSON output and run context
tracking (pipeline kind, run token, dialect).
"""

from playground.logging.filters import ContextFilter, clear_run_context, set_run_context
from playground.logging.logger import CustomJsonFormatter, get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
    "CustomJsonFormatter",
    "ContextFilter",
    "set_run_context",
    "clear_run_context",
]
