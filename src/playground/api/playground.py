from typing import Any, Awaitable, Callable, Mapping, Optional

from playground.__version__ import __version__
from playground.constants import Dialect, LoadingScope
from playground.formatter import SqlFormatter
from playground.loader import ModuleLoader
from playground.logging import get_logger
from playground.pipeline import CompilePipeline, LoadingState, PlaygroundContext, ResultSink
from playground.protocols import EditorSink, ModuleSupplier
from playground.sandbox import ExecutionSandbox
from playground.settings import get_settings
from playground.types import DEFAULT_SOURCE, FormatOptions, RunInputs, SharedState

logger = get_logger(__name__)


async def compile_source(
    source: str,
    dialect: Optional[Dialect] = None,
    options: Optional[FormatOptions] = None,
    *,
    loader: Optional[ModuleLoader] = None,
    sandbox: Optional[ExecutionSandbox] = None,
    formatter: Optional[SqlFormatter] = None,
) -> str:
    """Compile and format ``source`` once, without sequencing.

    Collaborators not passed in are built from settings.

    Raises:
        PlaygroundError: Any error of the run taxonomy
    """
    settings = get_settings()
    loader = loader or ModuleLoader(load_timeout=settings.loader.load_timeout_seconds)
    sandbox = sandbox or ExecutionSandbox.from_settings(settings.sandbox)
    formatter = formatter or SqlFormatter.from_settings(settings.formatter)

    inputs = RunInputs(
        source=source,
        dialect=Dialect(dialect or settings.default_dialect),
        options=options or formatter.default_options,
    )
    module = await loader.load(inputs.dialect)
    compiled = await sandbox.compile(module, inputs.dialect, inputs.source)
    return formatter.format_query(compiled, inputs.dialect, inputs.options)


def create_pipeline(
    source: str = DEFAULT_SOURCE,
    dialect: Optional[Dialect] = None,
    options: Optional[FormatOptions] = None,
    *,
    supplier: Optional[ModuleSupplier] = None,
    editor: Optional[EditorSink] = None,
    loading: Optional[LoadingState] = None,
) -> CompilePipeline:
    """Build a compile pipeline with every collaborator configured from settings.

    The pipeline is returned unstarted; call ``start()`` from a running
    event loop.
    """
    settings = get_settings()
    formatter = SqlFormatter.from_settings(settings.formatter)
    context = PlaygroundContext(
        source=source,
        dialect=dialect or settings.default_dialect,
        options=options or formatter.default_options,
    )
    sink = ResultSink()
    if editor is not None:
        sink.attach_editor(editor)

    return CompilePipeline(
        context=context,
        loader=ModuleLoader(supplier=supplier, load_timeout=settings.loader.load_timeout_seconds),
        sandbox=ExecutionSandbox.from_settings(settings.sandbox),
        formatter=formatter,
        sink=sink,
        loading=loading,
    )


async def restore_shared_state(
    context: PlaygroundContext,
    fetch: Callable[[], Awaitable[Optional[Mapping[str, Any]]]],
    loading: Optional[LoadingState] = None,
) -> SharedState:
    """Load a shared state and apply it to ``context``.

    The ``init_share`` loading scope is active while ``fetch`` runs.
    Invalid fields of the fetched payload fall back to their defaults.
    Only the installed builder can be loaded, so a state saved with another
    builder version is compiled with the installed one and a warning is
    logged.

    Args:
        context: Context to update
        fetch: Coroutine function returning the stored payload
        loading: Loading state to mark, if any

    Returns:
        The validated state that was applied
    """
    loading = loading or LoadingState()
    with loading.scope(LoadingScope.INIT_SHARE):
        payload = await fetch()
        state = SharedState.from_mapping(payload)
        logger.info(
            "Restoring shared state (dialect=%s, builder_version=%s)",
            state.dialect.value,
            state.builder_version,
        )
        if state.builder_version != __version__:
            logger.warning(
                "Shared state was saved with builder %s; compiling with installed builder %s",
                state.builder_version,
                __version__,
            )
        context.apply_shared_state(state)
    return state
