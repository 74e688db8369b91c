"""SQLite builder module."""

from playground.__version__ import __version__
from playground.constants import Dialect
from playground.query_builder.module import QueryBuilderModule
from playground.query_builder.sqlite.builder import SqliteQueryBuilder


def build_module() -> QueryBuilderModule:
    return QueryBuilderModule(
        dialect=Dialect.SQLITE,
        version=__version__,
        import_path=__name__,
        builder_class=SqliteQueryBuilder,
    )


__all__ = [
    "SqliteQueryBuilder",
    "build_module",
]
