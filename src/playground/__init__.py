
from playground.__version__ import __version__
from playground.constants import Dialect, IsolationMode, KeywordCase

from playground.api import (
    compile_source,
    create_pipeline,
    restore_shared_state,
)

from playground.pipeline import (
    CompilePipeline,
    LoadingState,
    PlaygroundContext,
    RequestSequencer,
    ResultSink,
    RunToken,
)
from playground.loader import ModuleLoader
from playground.sandbox import ExecutionSandbox
from playground.formatter import SqlFormatter
from playground.types import CompiledQuery, FormatOptions, SharedState

from playground.common.exceptions import (
    ErrorCode,
    ExecutionError,
    FormatError,
    ModuleUnavailable,
    NoQueryProduced,
    ParseError,
    PlaygroundError,
)

# Utils (public API)
from playground.utils import traced


__all__ = [
    "__version__",

    "Dialect",
    "IsolationMode",
    "KeywordCase",

    "CompilePipeline",
    "PlaygroundContext",
    "RequestSequencer",
    "RunToken",
    "ResultSink",
    "LoadingState",
    "ModuleLoader",
    "ExecutionSandbox",
    "SqlFormatter",

    "CompiledQuery",
    "FormatOptions",
    "SharedState",

    # Exceptions (public API)
    "PlaygroundError",
    "ErrorCode",
    "ModuleUnavailable",
    "ParseError",
    "ExecutionError",
    "NoQueryProduced",
    "FormatError",

    # Utilities (public API)
    "traced",

    #api
    "compile_source",
    "create_pipeline",
    "restore_shared_state",
]
