"""Typed SQL literal rendering for inlined parameters."""

import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from playground.common.exceptions import ErrorCode, format_error
from playground.constants import Dialect

_NUMERIC_BOOLEAN_DIALECTS = (Dialect.SQLITE, Dialect.MSSQL)


def render_literal(value: Any, dialect: Dialect) -> str:
    """Render ``value`` as a SQL literal for ``dialect``.

    Args:
        value: Parameter value
        dialect: Dialect whose literal syntax to use

    Returns:
        Literal SQL text

    Raises:
        FormatError: For NaN or infinite numbers and unsupported types
            (code UNSUPPORTED_PARAMETER)
    """
    if value is None:
        return "null"

    if isinstance(value, bool):
        if dialect in _NUMERIC_BOOLEAN_DIALECTS:
            return "1" if value else "0"
        return "true" if value else "false"

    if isinstance(value, int):
        return str(value)

    if isinstance(value, float):
        if not math.isfinite(value):
            raise _unsupported(value, "non-finite numbers have no SQL literal")
        return repr(value)

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise _unsupported(value, "non-finite numbers have no SQL literal")
        return str(value)

    if isinstance(value, str):
        return quote_string(value, dialect)

    # datetime is a subclass of date, so it is checked first.
    if isinstance(value, datetime):
        return quote_string(value.isoformat(sep=" "), dialect)
    if isinstance(value, date):
        return quote_string(value.isoformat(), dialect)
    if isinstance(value, time):
        return quote_string(value.isoformat(), dialect)

    if isinstance(value, (bytes, bytearray)):
        return _render_bytes(bytes(value), dialect)

    raise _unsupported(value, f"values of type {type(value).__name__} cannot be inlined")


def quote_string(text: str, dialect: Dialect) -> str:
    if dialect is Dialect.MYSQL:
        text = text.replace("\\", "\\\\")
    return "'" + text.replace("'", "''") + "'"


def _render_bytes(value: bytes, dialect: Dialect) -> str:
    hex_text = value.hex()
    if dialect is Dialect.POSTGRES:
        return f"'\\x{hex_text}'::bytea"
    if dialect is Dialect.MSSQL:
        return f"0x{hex_text.upper()}"
    return f"X'{hex_text.upper()}'"


def _unsupported(value: Any, reason: str):
    return format_error(
        f"Cannot inline parameter {value!r}: {reason}",
        error_code=ErrorCode.UNSUPPORTED_PARAMETER,
        value_type=type(value).__name__,
    )
