"""Unit tests for the single-flight module loader."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from playground.common.exceptions import ErrorCode, ModuleUnavailable
from playground.constants import Dialect
from playground.loader import ModuleLoader, import_supplier
from playground.query_builder import QueryBuilderFactory


def _module(dialect: Dialect):
    return QueryBuilderFactory.create(dialect)


class TestModuleLoaderCaching:
    """Caching and single-flight behaviour."""

    @pytest.mark.asyncio
    async def test_second_load_uses_cache(self):
        supplier = AsyncMock(side_effect=_module)
        loader = ModuleLoader(supplier=supplier)

        first = await loader.load(Dialect.POSTGRES)
        second = await loader.load(Dialect.POSTGRES)

        assert first is second
        assert supplier.await_count == 1
        assert loader.is_cached(Dialect.POSTGRES)
        assert loader.fetch_count(Dialect.POSTGRES) == 1

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_fetch(self):
        release = asyncio.Event()
        calls = []

        async def slow_supplier(dialect):
            calls.append(dialect)
            await release.wait()
            return _module(dialect)

        loader = ModuleLoader(supplier=slow_supplier)
        waiters = [asyncio.ensure_future(loader.load(Dialect.MYSQL)) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        modules = await asyncio.gather(*waiters)

        assert calls == [Dialect.MYSQL]
        assert all(module is modules[0] for module in modules)
        assert loader.fetch_count(Dialect.MYSQL) == 1

    @pytest.mark.asyncio
    async def test_dialects_are_cached_independently(self):
        supplier = AsyncMock(side_effect=_module)
        loader = ModuleLoader(supplier=supplier)

        postgres = await loader.load(Dialect.POSTGRES)
        mysql = await loader.load(Dialect.MYSQL)

        assert postgres.dialect is Dialect.POSTGRES
        assert mysql.dialect is Dialect.MYSQL
        assert supplier.await_count == 2

    @pytest.mark.asyncio
    async def test_accepts_dialect_value(self):
        loader = ModuleLoader(supplier=AsyncMock(side_effect=_module))

        module = await loader.load("sqlite")

        assert module.dialect is Dialect.SQLITE

    @pytest.mark.asyncio
    async def test_invalidate_forces_refetch(self):
        supplier = AsyncMock(side_effect=_module)
        loader = ModuleLoader(supplier=supplier)
        await loader.load(Dialect.POSTGRES)

        assert loader.invalidate(Dialect.POSTGRES) is True
        assert loader.invalidate(Dialect.POSTGRES) is False
        await loader.load(Dialect.POSTGRES)

        assert supplier.await_count == 2

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_shared_fetch(self):
        release = asyncio.Event()

        async def slow_supplier(dialect):
            await release.wait()
            return _module(dialect)

        loader = ModuleLoader(supplier=slow_supplier)
        cancelled = asyncio.ensure_future(loader.load(Dialect.POSTGRES))
        survivor = asyncio.ensure_future(loader.load(Dialect.POSTGRES))
        await asyncio.sleep(0)

        cancelled.cancel()
        release.set()
        module = await survivor

        assert module.dialect is Dialect.POSTGRES
        assert loader.is_cached(Dialect.POSTGRES)


class TestModuleLoaderFailures:
    """Failures surface as ModuleUnavailable and are never cached."""

    @pytest.mark.asyncio
    async def test_failure_is_not_cached_and_retry_succeeds(self):
        supplier = AsyncMock(side_effect=[ConnectionError("offline"), _module(Dialect.POSTGRES)])
        loader = ModuleLoader(supplier=supplier)

        with pytest.raises(ModuleUnavailable) as exc_info:
            await loader.load(Dialect.POSTGRES)

        assert exc_info.value.error_code is ErrorCode.MODULE_UNAVAILABLE
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert not loader.is_cached(Dialect.POSTGRES)

        module = await loader.load(Dialect.POSTGRES)
        assert module.dialect is Dialect.POSTGRES
        assert loader.fetch_count(Dialect.POSTGRES) == 2

    @pytest.mark.asyncio
    async def test_failure_does_not_touch_other_dialects(self):
        async def supplier(dialect):
            if dialect is Dialect.MYSQL:
                raise RuntimeError("mysql build broken")
            return _module(dialect)

        loader = ModuleLoader(supplier=supplier)
        postgres = await loader.load(Dialect.POSTGRES)

        with pytest.raises(ModuleUnavailable):
            await loader.load(Dialect.MYSQL)

        assert loader.is_cached(Dialect.POSTGRES)
        assert await loader.load(Dialect.POSTGRES) is postgres

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def never(dialect):
            await asyncio.sleep(10)

        loader = ModuleLoader(supplier=never, load_timeout=0.05)

        with pytest.raises(ModuleUnavailable, match="Timed out") as exc_info:
            await loader.load(Dialect.POSTGRES)

        assert exc_info.value.details["timeout_seconds"] == 0.05

    @pytest.mark.asyncio
    async def test_module_for_wrong_dialect_is_rejected(self):
        loader = ModuleLoader(supplier=AsyncMock(return_value=_module(Dialect.MYSQL)))

        with pytest.raises(ModuleUnavailable, match="invalid module"):
            await loader.load(Dialect.POSTGRES)

        assert not loader.is_cached(Dialect.POSTGRES)
        assert not loader.is_cached(Dialect.MYSQL)

    @pytest.mark.asyncio
    async def test_supplier_raising_module_unavailable_is_passed_through(self):
        error = ModuleUnavailable("registry says no")
        loader = ModuleLoader(supplier=AsyncMock(side_effect=error))

        with pytest.raises(ModuleUnavailable) as exc_info:
            await loader.load(Dialect.POSTGRES)

        assert exc_info.value is error


class TestImportSupplier:
    """The default supplier imports the dialect's builder package."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("dialect", list(Dialect))
    async def test_supplies_every_dialect(self, dialect):
        module = await import_supplier(dialect)

        assert module.dialect is dialect

    @pytest.mark.asyncio
    async def test_default_loader_uses_import_supplier(self):
        loader = ModuleLoader()

        module = await loader.load(Dialect.MSSQL)

        assert module.import_path == "playground.query_builder.mssql"
