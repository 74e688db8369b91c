"""MySQL builder module."""

from playground.__version__ import __version__
from playground.constants import Dialect
from playground.query_builder.module import QueryBuilderModule
from playground.query_builder.mysql.builder import MySqlQueryBuilder


def build_module() -> QueryBuilderModule:
    return QueryBuilderModule(
        dialect=Dialect.MYSQL,
        version=__version__,
        import_path=__name__,
        builder_class=MySqlQueryBuilder,
    )


__all__ = [
    "MySqlQueryBuilder",
    "build_module",
]
