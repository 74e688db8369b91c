"""PostgreSQL query builder."""

from playground.constants import Dialect
from playground.query_builder.base import BaseQueryBuilder


class PostgresQueryBuilder(BaseQueryBuilder):
    """Query builder for PostgreSQL.

    Uses double-quoted identifiers and numbered ``$n`` placeholders, and
    supports ``returning`` on insert, update and delete.
    """

    dialect = Dialect.POSTGRES

    def placeholder(self, index: int) -> str:
        return f"${index}"

    def quote_identifier(self, identifier: str, identifier_type: str = "identifier") -> str:
        identifier = identifier.strip()
        self._validate_identifier(identifier, identifier_type)
        return f'"{identifier}"'
