"""Common exceptions for the playground.

Exception Design:
    Every failure of a run maps onto one exception class of a small
    taxonomy (module loading, parsing, execution, query extraction,
    formatting). All inherit from PlaygroundError and carry an error code
    plus structured details, so the run boundary can hand them to the UI
    without inspecting messages.
"""

from playground.common.exceptions import (
    ErrorCode,
    ExecutionError,
    FormatError,
    ModuleUnavailable,
    NoQueryProduced,
    ParseError,
    PlaygroundError,
    # Helper functions
    error_from_dict,
    execution_error,
    format_error,
    internal_error,
)

__all__ = [
    # Base Exception and Error Codes
    "PlaygroundError",
    "ErrorCode",
    # Taxonomy
    "ModuleUnavailable",
    "ParseError",
    "ExecutionError",
    "NoQueryProduced",
    "FormatError",
    # Helper functions
    "error_from_dict",
    "execution_error",
    "format_error",
    "internal_error",
]
