"""Tests for the live compile pipeline and the api helpers."""

import asyncio
import logging

import pytest
from unittest.mock import AsyncMock, Mock

from playground.__version__ import __version__
from playground.api import compile_source, create_pipeline, restore_shared_state
from playground.common.exceptions import (
    ErrorCode,
    ModuleUnavailable,
    ParseError,
    PlaygroundError,
)
from playground.constants import Dialect, LoadingScope
from playground.formatter import SqlFormatter
from playground.loader import ModuleLoader
from playground.pipeline import CompilePipeline, LoadingState, PlaygroundContext
from playground.query_builder import QueryBuilderFactory
from playground.settings import _reload_settings
from playground.types import CompiledQuery, FormatOptions

SCENARIO_A = 'db.select_from("table").select("col")'
SCENARIO_C = 'db.select_from("table").select("col").where("id", "=", 7)'


class GatedSandbox:
    """Sandbox double whose compiles finish only when the test opens their gate."""

    def __init__(self):
        self.gates = {}
        self.finished = {}

    def gate(self, source):
        return self.gates.setdefault(source, asyncio.Event())

    def done(self, source):
        return self.finished.setdefault(source, asyncio.Event())

    async def compile(self, module, dialect, source):
        await self.gate(source).wait()
        self.done(source).set()
        return CompiledQuery(sql=f'select "{source}"', parameters=[], dialect=dialect)


class FailingSandbox:
    async def compile(self, module, dialect, source):
        raise RuntimeError("sandbox crashed")


@pytest.fixture
def supplier():
    return AsyncMock(side_effect=QueryBuilderFactory.create)


def _pipeline(context, sandbox, supplier=None, **kwargs):
    return CompilePipeline(
        context=context,
        loader=ModuleLoader(supplier=supplier),
        sandbox=sandbox,
        formatter=SqlFormatter(),
        **kwargs,
    )


@pytest.fixture
def inline_settings(monkeypatch):
    """Settings with the sandbox running inline."""
    monkeypatch.setenv("PLAYGROUND_SANDBOX_ISOLATION", "inline")
    yield _reload_settings()
    monkeypatch.undo()
    _reload_settings()


class TestPipelineScenarios:
    """End-to-end runs with the real loader, sandbox and formatter."""

    @pytest.mark.asyncio
    async def test_single_column_select(self, inline_sandbox):
        pipeline = _pipeline(PlaygroundContext(source=SCENARIO_A), inline_sandbox)

        pipeline.start()
        await pipeline.wait_idle()

        assert pipeline.sink.value == 'select "col" from "table"'
        assert not pipeline.is_loading

    @pytest.mark.asyncio
    async def test_parse_error_keeps_previous_result(self, inline_sandbox):
        context = PlaygroundContext(source=SCENARIO_A)
        pipeline = _pipeline(context, inline_sandbox)
        errors = Mock()
        pipeline.on_error(errors)
        pipeline.start()
        await pipeline.wait_idle()

        context.set_source('db.select_from("table".select("col")')
        await pipeline.wait_idle()

        error = errors.call_args.args[0]
        assert isinstance(error, ParseError)
        assert error.line == 1
        assert pipeline.sink.value == 'select "col" from "table"'
        assert pipeline.sequencer.outcome is error

    @pytest.mark.asyncio
    async def test_inline_parameters_option(self, inline_sandbox):
        context = PlaygroundContext(source=SCENARIO_C)
        pipeline = _pipeline(context, inline_sandbox)
        pipeline.start()
        await pipeline.wait_idle()

        assert pipeline.sink.value == 'select "col" from "table" where "id" = $1'

        context.set_options(FormatOptions(inline_parameters=True))
        await pipeline.wait_idle()

        assert pipeline.sink.value == 'select "col" from "table" where "id" = 7'

    @pytest.mark.asyncio
    async def test_dialect_switch_loads_module_once(self, inline_sandbox, supplier):
        context = PlaygroundContext(source=SCENARIO_A)
        pipeline = _pipeline(context, inline_sandbox, supplier)
        pipeline.start()
        await pipeline.wait_idle()

        context.set_dialect(Dialect.MYSQL)
        await pipeline.wait_idle()

        assert pipeline.sink.value == "select `col` from `table`"
        assert supplier.await_count == 2

        context.set_dialect(Dialect.POSTGRES)
        await pipeline.wait_idle()

        assert pipeline.sink.value == 'select "col" from "table"'
        assert supplier.await_count == 2

    @pytest.mark.asyncio
    async def test_editor_mirrors_results(self, inline_sandbox):
        editor = Mock(spec=["set_value"])
        pipeline = _pipeline(PlaygroundContext(source=SCENARIO_A), inline_sandbox)
        pipeline.sink.attach_editor(editor)

        pipeline.start()
        await pipeline.wait_idle()

        editor.set_value.assert_called_once_with('select "col" from "table"')


class TestPipelineSequencing:
    """Overlapping runs and staleness."""

    @pytest.mark.asyncio
    async def test_older_run_finishing_last_is_discarded(self):
        sandbox = GatedSandbox()
        context = PlaygroundContext(source="a")
        pipeline = _pipeline(context, sandbox)
        published = asyncio.Event()
        pipeline.sink.subscribe(lambda sql: published.set())

        pipeline.start()
        context.set_source("b")
        sandbox.gate("b").set()
        await asyncio.wait_for(published.wait(), timeout=5)

        sandbox.gate("a").set()
        await pipeline.wait_idle()

        assert pipeline.sink.value == 'select "b"'
        assert sandbox.done("a").is_set()

    @pytest.mark.asyncio
    async def test_older_run_finishing_first_is_discarded(self):
        sandbox = GatedSandbox()
        context = PlaygroundContext(source="a")
        pipeline = _pipeline(context, sandbox)
        consumer = Mock()
        pipeline.sink.subscribe(consumer)

        pipeline.start()
        context.set_source("b")
        sandbox.gate("a").set()
        await asyncio.wait_for(sandbox.done("a").wait(), timeout=5)

        assert pipeline.sink.value == ""
        assert pipeline.is_loading

        sandbox.gate("b").set()
        await pipeline.wait_idle()

        consumer.assert_called_once_with('select "b"')

    @pytest.mark.asyncio
    async def test_compile_loading_scope_follows_latest_run(self):
        sandbox = GatedSandbox()
        context = PlaygroundContext(source="a")
        loading = LoadingState()
        transitions = Mock()
        loading.subscribe(transitions)
        pipeline = _pipeline(context, sandbox, loading=loading)

        pipeline.start()
        context.set_source("b")
        assert loading.is_loading(LoadingScope.COMPILE)

        sandbox.gate("a").set()
        await asyncio.wait_for(sandbox.done("a").wait(), timeout=5)
        assert loading.is_loading(LoadingScope.COMPILE)

        sandbox.gate("b").set()
        await pipeline.wait_idle()

        assert not loading.is_loading()
        assert [c.args for c in transitions.call_args_list] == [("compile", True), ("compile", False)]

    @pytest.mark.asyncio
    async def test_pending_runs_are_counted(self):
        sandbox = GatedSandbox()
        context = PlaygroundContext(source="a")
        pipeline = _pipeline(context, sandbox)

        pipeline.start()
        context.set_source("b")
        assert pipeline.pending_runs == 2

        sandbox.gate("a").set()
        sandbox.gate("b").set()
        await pipeline.wait_idle()
        assert pipeline.pending_runs == 0

    @pytest.mark.asyncio
    async def test_close_stops_following_context(self, inline_sandbox):
        context = PlaygroundContext(source=SCENARIO_A)
        pipeline = _pipeline(context, inline_sandbox)
        pipeline.start()
        await pipeline.wait_idle()

        pipeline.close()
        context.set_dialect(Dialect.MYSQL)

        assert pipeline.pending_runs == 0
        assert pipeline.sink.value == 'select "col" from "table"'


class TestPipelineErrors:
    """Error outcomes reported to listeners."""

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_internal_error(self):
        pipeline = _pipeline(PlaygroundContext(source=SCENARIO_A), FailingSandbox())
        errors = Mock()
        pipeline.on_error(errors)

        pipeline.start()
        await pipeline.wait_idle()

        error = errors.call_args.args[0]
        assert type(error) is PlaygroundError
        assert error.error_code is ErrorCode.INTERNAL_ERROR
        assert isinstance(error.cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_module_failure_is_reported_and_retried(self, inline_sandbox):
        supplier = AsyncMock(side_effect=[ConnectionError("offline"), QueryBuilderFactory.create(Dialect.POSTGRES)])
        context = PlaygroundContext(source=SCENARIO_A)
        pipeline = _pipeline(context, inline_sandbox, supplier)
        errors = Mock()
        pipeline.on_error(errors)

        pipeline.start()
        await pipeline.wait_idle()
        assert isinstance(errors.call_args.args[0], ModuleUnavailable)

        pipeline.trigger()
        await pipeline.wait_idle()
        assert pipeline.sink.value == 'select "col" from "table"'


class TestApi:
    """Module level helpers."""

    @pytest.mark.asyncio
    async def test_compile_source(self, inline_sandbox):
        sql = await compile_source(
            SCENARIO_C,
            Dialect.POSTGRES,
            FormatOptions(inline_parameters=True, keyword_case="upper"),
            sandbox=inline_sandbox,
        )

        assert sql == 'SELECT "col" FROM "table" WHERE "id" = 7'

    @pytest.mark.asyncio
    async def test_compile_source_raises_run_errors(self, inline_sandbox):
        with pytest.raises(ParseError):
            await compile_source("db.select_from(", Dialect.MSSQL, sandbox=inline_sandbox)

    @pytest.mark.asyncio
    async def test_create_pipeline_from_settings(self, inline_settings):
        editor = Mock(spec=["set_value"])

        pipeline = create_pipeline(SCENARIO_A, Dialect.SQLITE, editor=editor)
        pipeline.start()
        await pipeline.wait_idle()

        assert pipeline.sandbox.isolation.value == "inline"
        editor.set_value.assert_called_once_with('select "col" from "table"')

    @pytest.mark.asyncio
    async def test_restore_shared_state(self):
        context = PlaygroundContext()
        loading = LoadingState()
        seen = []

        async def fetch():
            seen.append(loading.is_loading(LoadingScope.INIT_SHARE))
            return {"dialect": "mysql", "builder_version": "not a version", "source": SCENARIO_A}

        state = await restore_shared_state(context, fetch, loading)

        assert seen == [True]
        assert not loading.is_loading()
        assert state.dialect is Dialect.MYSQL
        assert context.dialect is Dialect.MYSQL
        assert context.source == SCENARIO_A

    @pytest.mark.asyncio
    async def test_restore_older_builder_version_warns(self, caplog):
        context = PlaygroundContext()
        payload = {"dialect": "sqlite", "builder_version": "0.0.1", "source": SCENARIO_A}

        with caplog.at_level(logging.WARNING, logger="playground.api.playground"):
            state = await restore_shared_state(context, AsyncMock(return_value=payload))

        assert state.builder_version == "0.0.1"
        assert context.dialect is Dialect.SQLITE
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert __version__ in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_restore_current_builder_version_is_quiet(self, caplog):
        payload = {"builder_version": __version__, "source": SCENARIO_A}

        with caplog.at_level(logging.WARNING, logger="playground.api.playground"):
            await restore_shared_state(PlaygroundContext(), AsyncMock(return_value=payload))

        assert not [r for r in caplog.records if r.levelno == logging.WARNING]

    @pytest.mark.asyncio
    async def test_restore_shared_state_triggers_one_run(self, inline_sandbox):
        context = PlaygroundContext(source=SCENARIO_A)
        pipeline = _pipeline(context, inline_sandbox)
        pipeline.start()
        await pipeline.wait_idle()

        payload = {"dialect": "mssql", "source": SCENARIO_A}

        await restore_shared_state(context, AsyncMock(return_value=payload))
        assert pipeline.pending_runs == 1
        await pipeline.wait_idle()

        assert pipeline.sink.value == "select [col] from [table]"
