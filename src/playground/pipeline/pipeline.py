"""Live compile pipeline.

Wires the playground context to the module loader, the execution sandbox,
the formatter and the result sink. Each change of the context issues a
run token and schedules a run task; the sequencer decides at completion
whether the run's outcome becomes visible.

Run lifecycle:
    trigger() -> token issued, inputs snapshotted, task scheduled
    task: load module -> compile in sandbox -> format
    completion -> sequencer.complete(token, sql or error)
"""

import asyncio
from typing import FrozenSet, Optional, Set

from playground.common.exceptions import PlaygroundError, internal_error
from playground.constants import COMPILE_PIPELINE, LoadingScope, RunStatus
from playground.formatter import SqlFormatter
from playground.loader import ModuleLoader
from playground.logging import get_logger, set_run_context
from playground.pipeline.context import PlaygroundContext
from playground.pipeline.loading import LoadingState
from playground.pipeline.sequencer import ErrorListener, Outcome, RequestSequencer, RunToken
from playground.pipeline.sink import ResultSink
from playground.sandbox import ExecutionSandbox
from playground.types import RunInputs
from playground.utils.decorators import traced
from playground.utils.listeners import Unsubscribe

logger = get_logger(__name__)


class CompilePipeline:
    """Compiles the context's source whenever the context changes.

    Attributes:
        context: Inputs of the runs
        loader: Builder module cache
        sandbox: Executes source against a module
        formatter: Renders compiled queries
        sequencer: Decides which run outcome is visible
        loading: Loading scopes; ``compile`` is active while a run is current

    Example:
        >>> pipeline = CompilePipeline(PlaygroundContext(), ModuleLoader(), ExecutionSandbox(), SqlFormatter())
        >>> pipeline.start()
        >>> await pipeline.wait_idle()
        >>> pipeline.sink.value
        'select "id", "first_name" from "person" where "id" = $1'
    """

    def __init__(
        self,
        context: PlaygroundContext,
        loader: ModuleLoader,
        sandbox: ExecutionSandbox,
        formatter: SqlFormatter,
        sink: Optional[ResultSink] = None,
        sequencer: Optional[RequestSequencer] = None,
        loading: Optional[LoadingState] = None,
    ):
        self.context = context
        self.loader = loader
        self.sandbox = sandbox
        self.formatter = formatter
        self.sequencer = sequencer or RequestSequencer(COMPILE_PIPELINE, sink=sink)
        self.loading = loading or LoadingState()
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._unsubscribe: Optional[Unsubscribe] = None
        self.sequencer.on_status_change(self._on_status_change)

    @property
    def sink(self) -> ResultSink:
        return self.sequencer.sink

    @property
    def is_loading(self) -> bool:
        return self.sequencer.is_loading

    @property
    def pending_runs(self) -> int:
        return len(self._tasks)

    def start(self) -> RunToken:
        """Follow context changes and issue the initial run."""
        if self._unsubscribe is None:
            self._unsubscribe = self.context.subscribe(self._on_context_change)
        return self.trigger()

    def trigger(self) -> RunToken:
        """Issue a run for the current context. Must be called from a running event loop."""
        loop = asyncio.get_running_loop()
        token = self.sequencer.issue()
        inputs = self.context.snapshot()

        task = loop.create_task(self._run(token, inputs), name=f"playground-run-{token}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return token

    def on_error(self, listener: ErrorListener) -> Unsubscribe:
        return self.sequencer.on_error(listener)

    async def wait_idle(self) -> None:
        """Wait until every scheduled run, stale or current, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Stop following the context. Runs already scheduled still complete."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @traced(
        "playground.pipeline.compile",
        attribute_getter=lambda self, inputs: {"playground.dialect": inputs.dialect.value},
    )
    async def compile(self, inputs: RunInputs) -> str:
        """Load, compile and format ``inputs`` without any sequencing.

        Raises:
            PlaygroundError: Any error of the run taxonomy
        """
        module = await self.loader.load(inputs.dialect)
        compiled = await self.sandbox.compile(module, inputs.dialect, inputs.source)
        return self.formatter.format_query(compiled, inputs.dialect, inputs.options)

    async def _run(self, token: RunToken, inputs: RunInputs) -> None:
        set_run_context(pipeline=token.kind, run_token=token.value, dialect=inputs.dialect.value)

        outcome: Outcome
        try:
            outcome = await self.compile(inputs)
        except PlaygroundError as exc:
            logger.info("Run %s failed: %s", token, exc)
            outcome = exc
        except Exception as exc:
            logger.exception("Run %s failed unexpectedly", token)
            outcome = internal_error(exc)

        committed = self.sequencer.complete(token, outcome)
        logger.debug("Run %s finished (%s)", token, "committed" if committed else "stale")

    def _on_context_change(self, changed: FrozenSet[str]) -> None:
        logger.debug("Context change (%s) triggers a run", ", ".join(sorted(changed)))
        self.trigger()

    def _on_status_change(self, old: RunStatus, new: RunStatus) -> None:
        if new is RunStatus.RUNNING:
            self.loading.begin(LoadingScope.COMPILE)
        elif old is RunStatus.RUNNING:
            self.loading.end(LoadingScope.COMPILE)
