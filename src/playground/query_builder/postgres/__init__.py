"""PostgreSQL builder module."""

from playground.__version__ import __version__
from playground.constants import Dialect
from playground.query_builder.module import QueryBuilderModule
from playground.query_builder.postgres.builder import PostgresQueryBuilder


def build_module() -> QueryBuilderModule:
    return QueryBuilderModule(
        dialect=Dialect.POSTGRES,
        version=__version__,
        import_path=__name__,
        builder_class=PostgresQueryBuilder,
    )


__all__ = [
    "PostgresQueryBuilder",
    "build_module",
]
