"""Static allowlist check for playground source.

Source is validated on its AST before anything runs. The rules keep user
code inside the builder API surface: it cannot import, and cannot reach
private or dunder attributes or the internals of generators, frames,
tracebacks and code objects, since a frame chain leads back to host
globals. It also cannot use constructs whose results depend on the
interpreter instance, such as set displays whose iteration order follows
per-process string hashing.
"""

import ast
from typing import List, Optional

from playground.common.exceptions import ErrorCode, ExecutionError

# str.format can reach attributes through the format mini-language.
_BLOCKED_ATTRIBUTES = frozenset({"format", "format_map", "mro"})

# Generator, coroutine, frame, traceback and code object internals.
_INTROSPECTION_PREFIXES = ("gi_", "cr_", "ag_", "f_", "tb_", "co_")


class SourceViolation:
    """One disallowed construct found in the source."""

    def __init__(self, message: str, node: ast.AST):
        self.message = message
        self.line: Optional[int] = getattr(node, "lineno", None)
        column = getattr(node, "col_offset", None)
        self.column: Optional[int] = column + 1 if column is not None else None

    def __repr__(self) -> str:
        return f"SourceViolation({self.message!r}, line={self.line}, column={self.column})"


class SourceValidator(ast.NodeVisitor):
    """Collects allowlist violations from a parsed module.

    Example:
        >>> violations = SourceValidator().check(ast.parse("import os"))
        >>> violations[0].message
        'import statements are not allowed'
    """

    def __init__(self):
        self.violations: List[SourceViolation] = []

    def check(self, tree: ast.AST) -> List[SourceViolation]:
        self.violations = []
        self.visit(tree)
        return self.violations

    def _reject(self, message: str, node: ast.AST) -> None:
        self.violations.append(SourceViolation(message, node))

    def visit_Import(self, node: ast.Import) -> None:
        self._reject("import statements are not allowed", node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        self._reject("import statements are not allowed", node)

    def visit_Global(self, node: ast.Global) -> None:
        self._reject("global declarations are not allowed", node)

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self._reject("nonlocal declarations are not allowed", node)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._reject("class definitions are not allowed", node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        self._reject("async functions are not allowed", node)

    def visit_Await(self, node: ast.Await) -> None:
        self._reject("await is not allowed", node)

    def visit_AsyncFor(self, node: ast.AsyncFor) -> None:
        self._reject("async for is not allowed", node)

    def visit_AsyncWith(self, node: ast.AsyncWith) -> None:
        self._reject("async with is not allowed", node)

    def visit_Set(self, node: ast.Set) -> None:
        self._reject("set displays are not allowed; use a list", node)
        self.generic_visit(node)

    def visit_SetComp(self, node: ast.SetComp) -> None:
        self._reject("set comprehensions are not allowed; use a list", node)
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id.startswith("_"):
            self._reject(f"name {node.id!r} is not allowed", node)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if node.attr.startswith("_"):
            self._reject(f"attribute {node.attr!r} is not allowed", node)
        elif node.attr in _BLOCKED_ATTRIBUTES or node.attr.startswith(_INTROSPECTION_PREFIXES):
            self._reject(f"attribute {node.attr!r} is not allowed", node)
        self.generic_visit(node)

    def visit_arg(self, node: ast.arg) -> None:
        if node.arg.startswith("_"):
            self._reject(f"argument name {node.arg!r} is not allowed", node)
        self.generic_visit(node)


def validate_tree(tree: ast.AST) -> None:
    """Raise ExecutionError for the first allowlist violation in ``tree``."""
    violations = SourceValidator().check(tree)
    if not violations:
        return

    first = violations[0]
    raise ExecutionError(
        first.message,
        error_code=ErrorCode.SANDBOX_VIOLATION,
        details={
            "line": first.line,
            "column": first.column,
            "violations": len(violations),
        },
    )
