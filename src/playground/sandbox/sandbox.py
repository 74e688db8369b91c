import asyncio
from typing import Optional

from playground.common.exceptions import ErrorCode, ExecutionError, ParseError
from playground.constants import Dialect, IsolationMode
from playground.logging import get_logger
from playground.query_builder.module import QueryBuilderModule
from playground.sandbox.process import run_in_process
from playground.sandbox.runtime import ensure_module_dialect, execute_source, prepare_source
from playground.settings import SandboxSettings, get_settings
from playground.types import CompiledQuery
from playground.utils.decorators import traced

logger = get_logger(__name__)


class ExecutionSandbox:
    """Runs playground source against a builder module.

    In ``process`` mode each compile runs in a fresh child process that is
    terminated when it exceeds ``timeout_seconds``. In ``inline`` mode the
    source runs on a worker thread of this process; the timeout is still
    reported, but the thread cannot be stopped and runs to completion in
    the background.

    Attributes:
        isolation: Where source runs
        timeout_seconds: Execution time limit per compile
        max_source_length: Longest accepted source, in characters
        start_method: multiprocessing start method for process mode
        startup_timeout_seconds: Time limit for a child to become ready

    Example:
        >>> sandbox = ExecutionSandbox(isolation=IsolationMode.INLINE)
        >>> compiled = await sandbox.compile(module, Dialect.POSTGRES, 'db.select_from("t").select("c")')
        >>> compiled.sql
        'select "c" from "t"'
    """

    def __init__(
        self,
        isolation: IsolationMode = IsolationMode.PROCESS,
        timeout_seconds: float = 2.0,
        max_source_length: int = 20_000,
        start_method: str = "spawn",
        startup_timeout_seconds: float = 30.0,
    ):
        self.isolation = IsolationMode(isolation)
        self.timeout_seconds = timeout_seconds
        self.max_source_length = max_source_length
        self.start_method = start_method
        self.startup_timeout_seconds = startup_timeout_seconds

    @classmethod
    def from_settings(cls, settings: Optional[SandboxSettings] = None) -> "ExecutionSandbox":
        settings = settings or get_settings().sandbox
        return cls(
            isolation=settings.isolation,
            timeout_seconds=settings.timeout_seconds,
            max_source_length=settings.max_source_length,
            start_method=settings.start_method,
            startup_timeout_seconds=settings.startup_timeout_seconds,
        )

    @traced(
        "playground.sandbox.compile",
        attribute_getter=lambda self, module, dialect, source: {
            "playground.dialect": Dialect(dialect).value,
            "playground.sandbox.isolation": self.isolation.value,
            "playground.source.length": len(source) if isinstance(source, str) else None,
        },
    )
    async def compile(
        self,
        module: QueryBuilderModule,
        dialect: Dialect,
        source: str,
    ) -> CompiledQuery:
        """Execute ``source`` and return the query it produced.

        Args:
            module: Loaded builder module for ``dialect``
            dialect: Dialect to compile for
            source: Playground source text

        Returns:
            CompiledQuery tagged with ``dialect``

        Raises:
            ParseError: Invalid syntax, or source longer than max_source_length
            ExecutionError: Disallowed construct, runtime fault, builder
                misuse, dialect mismatch or timeout
            NoQueryProduced: Source ran but yielded no query
        """
        dialect = Dialect(dialect)
        self._check_source(source)
        ensure_module_dialect(module, dialect)

        if self.isolation is IsolationMode.INLINE:
            return await self._compile_inline(module, dialect, source)

        # Parse and allowlist errors surface here, before a child is started.
        prepare_source(source)
        return await asyncio.to_thread(
            run_in_process,
            module,
            dialect,
            source,
            timeout=self.timeout_seconds,
            startup_timeout=self.startup_timeout_seconds,
            start_method=self.start_method,
        )

    async def _compile_inline(
        self,
        module: QueryBuilderModule,
        dialect: Dialect,
        source: str,
    ) -> CompiledQuery:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(execute_source, module, dialect, source),
                self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Inline execution exceeded %.2fs; the worker thread cannot be stopped "
                "and keeps running in the background",
                self.timeout_seconds,
            )
            raise ExecutionError(
                f"Source did not finish within {self.timeout_seconds:g} seconds",
                error_code=ErrorCode.EXECUTION_TIMEOUT,
                details={"phase": "execution", "timeout_seconds": self.timeout_seconds},
                cause=exc,
            ) from exc

    def _check_source(self, source: str) -> None:
        if not isinstance(source, str):
            raise ParseError(f"Source must be text, got {type(source).__name__}")
        if len(source) > self.max_source_length:
            raise ParseError(
                f"Source is {len(source)} characters long; the limit is {self.max_source_length}",
                error_code=ErrorCode.SOURCE_TOO_LARGE,
                details={"length": len(source), "max_source_length": self.max_source_length},
            )
