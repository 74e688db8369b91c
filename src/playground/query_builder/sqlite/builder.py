"""SQLite query builder."""

from playground.constants import Dialect
from playground.query_builder.base import BaseQueryBuilder


class SqliteQueryBuilder(BaseQueryBuilder):
    """Query builder for SQLite.

    Uses double-quoted identifiers and positional ``?`` placeholders.
    SQLite (3.35+) supports ``returning``.
    """

    dialect = Dialect.SQLITE

    def placeholder(self, index: int) -> str:
        return "?"

    def quote_identifier(self, identifier: str, identifier_type: str = "identifier") -> str:
        identifier = identifier.strip()
        self._validate_identifier(identifier, identifier_type)
        return f'"{identifier}"'
