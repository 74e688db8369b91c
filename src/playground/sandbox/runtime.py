"""Execution of playground source against a builder module.

This module holds the synchronous core shared by both isolation modes:
parsing, allowlist validation, execution in a fresh restricted namespace
and extraction of the resulting query. It has no knowledge of threads or
processes.
"""

import ast
import builtins
from types import CodeType, TracebackType
from typing import Any, Dict, Optional, Tuple

from playground.common.exceptions import (
    ErrorCode,
    ExecutionError,
    NoQueryProduced,
    ParseError,
    PlaygroundError,
    execution_error,
)
from playground.constants import Dialect
from playground.query_builder.module import QueryBuilderModule
from playground.query_builder.queries import QUERY_TYPES
from playground.sandbox.validator import validate_tree
from playground.types import CompiledQuery

SOURCE_FILENAME = "<playground>"
RESULT_NAME = "_playground_result"
QUERY_NAME = "query"

_ALLOWED_BUILTINS = (
    "abs", "all", "any", "bool", "dict", "enumerate", "filter", "float",
    "int", "isinstance", "len", "list", "map", "max", "min", "range",
    "reversed", "round", "sorted", "str", "sum", "tuple", "zip",
    "ArithmeticError", "Exception", "IndexError", "KeyError",
    "LookupError", "NotImplementedError", "TypeError", "ValueError",
    "ZeroDivisionError",
)

SAFE_BUILTINS: Dict[str, Any] = {name: getattr(builtins, name) for name in _ALLOWED_BUILTINS}

_MISSING = object()


def prepare_source(source: str) -> Tuple[CodeType, bool]:
    """Parse, validate and compile source.

    When the last statement is an expression, its value is captured under
    an internal name so it can be picked up as the query.

    Args:
        source: Playground source text

    Returns:
        Tuple of (code object, whether the last statement was an expression)

    Raises:
        ParseError: If the source is not valid Python
        ExecutionError: If the source uses a disallowed construct
    """
    try:
        tree = ast.parse(source, filename=SOURCE_FILENAME, mode="exec")
    except SyntaxError as exc:
        raise ParseError(
            exc.msg or "invalid syntax",
            line=exc.lineno,
            column=exc.offset,
            cause=exc,
        ) from exc
    except ValueError as exc:
        # Null bytes are reported as ValueError before Python 3.12.
        raise ParseError(str(exc), cause=exc) from exc

    validate_tree(tree)

    captures_expression = bool(tree.body) and isinstance(tree.body[-1], ast.Expr)
    if captures_expression:
        last = tree.body[-1]
        capture = ast.Assign(
            targets=[ast.Name(id=RESULT_NAME, ctx=ast.Store())],
            value=last.value,
        )
        tree.body[-1] = ast.copy_location(capture, last)
        ast.fix_missing_locations(tree)

    return compile(tree, SOURCE_FILENAME, "exec"), captures_expression


def ensure_module_dialect(module: QueryBuilderModule, dialect: Dialect) -> None:
    if module.dialect is not dialect:
        raise ExecutionError(
            f"Module for {module.dialect.value} cannot compile {dialect.value} queries",
            error_code=ErrorCode.DIALECT_MISMATCH,
            details={"module_dialect": module.dialect.value, "dialect": dialect.value},
        )


def execute_source(module: QueryBuilderModule, dialect: Dialect, source: str) -> CompiledQuery:
    """Run source against ``module`` and return the query it produced.

    Every call builds a fresh namespace and a fresh ``db`` entry point, so
    runs share nothing but the immutable module.

    Args:
        module: Builder module for ``dialect``
        dialect: Dialect the source is compiled for
        source: Playground source text

    Returns:
        CompiledQuery produced by the source

    Raises:
        ParseError: Source is not valid Python
        ExecutionError: Disallowed construct, runtime fault, or builder misuse
        NoQueryProduced: Source ran but yielded no query
    """
    ensure_module_dialect(module, dialect)

    code, captures_expression = prepare_source(source)
    namespace: Dict[str, Any] = {
        "__builtins__": dict(SAFE_BUILTINS),
        "db": module.create_builder(),
    }

    try:
        exec(code, namespace)
    except PlaygroundError:
        raise
    except Exception as exc:
        raise execution_error(
            f"{type(exc).__name__}: {exc}",
            exc,
            details={"line": _source_line(exc.__traceback__)},
        ) from exc

    candidate = namespace.get(RESULT_NAME, _MISSING) if captures_expression else _MISSING
    if not _is_query(candidate):
        candidate = namespace.get(QUERY_NAME, _MISSING)
    if not _is_query(candidate):
        raise NoQueryProduced(
            "Source did not produce a query; end it with a query expression "
            f"or assign the query to '{QUERY_NAME}'"
        )

    return _compile_candidate(candidate, dialect)


def _is_query(value: Any) -> bool:
    return isinstance(value, QUERY_TYPES) or isinstance(value, CompiledQuery)


def _compile_candidate(candidate: Any, dialect: Dialect) -> CompiledQuery:
    if isinstance(candidate, CompiledQuery):
        compiled = candidate
    else:
        try:
            compiled = candidate.compile()
        except Exception as exc:
            raise execution_error(f"{type(exc).__name__}: {exc}", exc) from exc

    if compiled.dialect is not dialect:
        raise ExecutionError(
            f"Query was compiled for {compiled.dialect.value}, expected {dialect.value}",
            error_code=ErrorCode.DIALECT_MISMATCH,
        )
    return compiled


def _source_line(tb: Optional[TracebackType]) -> Optional[int]:
    """Line of the innermost traceback frame that belongs to user source."""
    line = None
    while tb is not None:
        if tb.tb_frame.f_code.co_filename == SOURCE_FILENAME:
            line = tb.tb_lineno
        tb = tb.tb_next
    return line
