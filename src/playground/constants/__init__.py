"""Constants module for the playground.

This module contains all constant values and enumerations used throughout
the playground. It has no dependencies on other playground modules.

Organization:
    - sql: Dialects, placeholder styles and keyword casing
    - pipeline: Sequencer states, sandbox isolation modes, loading scopes
"""

from playground.constants.sql import Dialect, KeywordCase, PlaceholderStyle
from playground.constants.pipeline import (
    COMPILE_PIPELINE,
    IsolationMode,
    LoadingScope,
    RunStatus,
)

__all__ = [
    # SQL
    "Dialect",
    "KeywordCase",
    "PlaceholderStyle",
    # Pipeline
    "COMPILE_PIPELINE",
    "IsolationMode",
    "LoadingScope",
    "RunStatus",
]
