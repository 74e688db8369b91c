"""Execution sandbox for playground source.

Source is parsed, checked against an AST allowlist, executed with a
restricted set of builtins and a fresh ``db`` entry point, and the query it
produced is compiled. By default every run happens in a child process that
is terminated on timeout.
"""

from playground.sandbox.runtime import SAFE_BUILTINS, execute_source, prepare_source
from playground.sandbox.sandbox import ExecutionSandbox
from playground.sandbox.validator import SourceValidator, validate_tree

__all__ = [
    "ExecutionSandbox",
    "execute_source",
    "prepare_source",
    "SAFE_BUILTINS",
    "SourceValidator",
    "validate_tree",
]
