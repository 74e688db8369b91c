import pytest

from playground.constants import Dialect, IsolationMode
from playground.logging import clear_run_context
from playground.query_builder import QueryBuilderFactory
from playground.sandbox import ExecutionSandbox


@pytest.fixture(autouse=True)
def _reset_run_context():
    yield
    clear_run_context()


@pytest.fixture
def postgres_module():
    return QueryBuilderFactory.create(Dialect.POSTGRES)


@pytest.fixture
def mysql_module():
    return QueryBuilderFactory.create(Dialect.MYSQL)


@pytest.fixture
def inline_sandbox():
    """Sandbox running source on a worker thread of the test process."""
    return ExecutionSandbox(isolation=IsolationMode.INLINE, timeout_seconds=5.0)


@pytest.fixture
def pg():
    """``db`` entry point for PostgreSQL."""
    return QueryBuilderFactory.create(Dialect.POSTGRES).create_builder()
