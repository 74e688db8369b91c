"""SQL Server builder module."""

from playground.__version__ import __version__
from playground.constants import Dialect
from playground.query_builder.module import QueryBuilderModule
from playground.query_builder.mssql.builder import MsSqlQueryBuilder


def build_module() -> QueryBuilderModule:
    return QueryBuilderModule(
        dialect=Dialect.MSSQL,
        version=__version__,
        import_path=__name__,
        builder_class=MsSqlQueryBuilder,
    )


__all__ = [
    "MsSqlQueryBuilder",
    "build_module",
]
