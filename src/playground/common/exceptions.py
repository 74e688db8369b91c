from enum import Enum
from typing import Any, Dict, Optional, Type


class ErrorCode(Enum):
    """Standard error codes for playground runs.

    Each category has its own prefix for easy identification in logs and
    in the UI error panel.

    Attributes:
        CONFIG_*: Configuration-related errors
        MODULE_*: Builder module loading errors
        PARSE_*: Source parsing errors
        EXECUTION_*: Sandbox execution errors
        QUERY_*: Query extraction errors
        FORMAT_*: Formatting errors
        INTERNAL_*: Unexpected failures caught at the run boundary
    """
    # Configuration errors
    CONFIG_ERROR = "CONFIG_001"

    # Module errors
    MODULE_UNAVAILABLE = "MODULE_001"

    # Parse errors
    PARSE_ERROR = "PARSE_001"
    SOURCE_TOO_LARGE = "PARSE_002"

    # Execution errors
    EXECUTION_ERROR = "EXECUTION_001"
    EXECUTION_TIMEOUT = "EXECUTION_002"
    SANDBOX_VIOLATION = "EXECUTION_003"
    DIALECT_MISMATCH = "EXECUTION_004"

    # Query extraction errors
    NO_QUERY_PRODUCED = "QUERY_001"

    # Format errors
    FORMAT_ERROR = "FORMAT_001"
    PARAMETER_MISMATCH = "FORMAT_002"
    UNSUPPORTED_PARAMETER = "FORMAT_003"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_001"


class PlaygroundError(Exception):
    """Base exception for all playground errors.

    Errors carry an error code for categorization plus structured details
    that the UI layer can render next to the offending source.

    Attributes:
        message: Error message
        error_code: Error code from ErrorCode enum
        details: Additional error details
        cause: Optional underlying exception
    """

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        msg = f"[{self.error_code.value}] {self.message}"
        if self.cause:
            msg = f"{msg} (caused by: {type(self.cause).__name__}: {str(self.cause)})"
        return msg

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlaygroundError):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = Exception.__hash__

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
        }


class ModuleUnavailable(PlaygroundError):
    """The builder module for a dialect could not be obtained."""

    default_code = ErrorCode.MODULE_UNAVAILABLE


class ParseError(PlaygroundError):
    """User source is not syntactically valid.

    Attributes:
        line: 1-based line of the error, when known
        column: 1-based column of the error, when known
    """

    default_code = ErrorCode.PARSE_ERROR

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        **kwargs: Any,
    ):
        details = dict(kwargs.pop("details", None) or {})
        if line is not None:
            details["line"] = line
        if column is not None:
            details["column"] = column
        super().__init__(message, details=details, **kwargs)
        self.line = line
        self.column = column


class ExecutionError(PlaygroundError):
    """User source failed while running inside the sandbox."""

    default_code = ErrorCode.EXECUTION_ERROR


class NoQueryProduced(PlaygroundError):
    """User source ran but did not yield a query."""

    default_code = ErrorCode.NO_QUERY_PRODUCED


class FormatError(PlaygroundError):
    """A compiled query could not be rendered safely."""

    default_code = ErrorCode.FORMAT_ERROR


_ERROR_TYPES: Dict[str, Type[PlaygroundError]] = {
    cls.__name__: cls
    for cls in (
        PlaygroundError,
        ModuleUnavailable,
        ParseError,
        ExecutionError,
        NoQueryProduced,
        FormatError,
    )
}


def error_from_dict(payload: Dict[str, Any]) -> PlaygroundError:
    """Rebuild an error from its ``to_dict`` form.

    Used to carry sandbox failures across the process boundary.

    Args:
        payload: Dictionary produced by ``PlaygroundError.to_dict``

    Returns:
        PlaygroundError of the original type
    """
    cls = _ERROR_TYPES.get(payload.get("type", ""), PlaygroundError)
    error_code = ErrorCode(payload.get("error_code", ErrorCode.INTERNAL_ERROR.value))
    details = dict(payload.get("details") or {})
    message = payload.get("message", "")

    if cls is ParseError:
        return ParseError(
            message,
            line=details.pop("line", None),
            column=details.pop("column", None),
            error_code=error_code,
            details=details,
        )
    return cls(message, error_code=error_code, details=details)


# Helper functions for common error scenarios
def execution_error(
    message: str,
    exc: Optional[BaseException] = None,
    **kwargs: Any,
) -> ExecutionError:
    """Create an execution error from a user-code exception.

    Args:
        message: Error message
        exc: Exception raised by the user's code
        **kwargs: Additional error details

    Returns:
        ExecutionError with the exception type recorded in details
    """
    details = dict(kwargs.pop("details", None) or {})
    if exc is not None:
        details["exception_type"] = type(exc).__name__
    return ExecutionError(message, details=details, **kwargs)


def format_error(
    message: str,
    error_code: ErrorCode = ErrorCode.FORMAT_ERROR,
    **details: Any,
) -> FormatError:
    """Create a format error with keyword details."""
    return FormatError(message, error_code=error_code, details=details)


def internal_error(exc: BaseException) -> PlaygroundError:
    """Wrap an unexpected exception caught at the run boundary."""
    return PlaygroundError(
        f"Unexpected {type(exc).__name__}: {exc}",
        error_code=ErrorCode.INTERNAL_ERROR,
        cause=exc,
    )
