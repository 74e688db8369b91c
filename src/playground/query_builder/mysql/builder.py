"""MySQL query builder."""

from playground.constants import Dialect
from playground.query_builder.base import BaseQueryBuilder


class MySqlQueryBuilder(BaseQueryBuilder):
    """Query builder for MySQL.

    Uses backtick-quoted identifiers and positional ``?`` placeholders.
    MySQL has no ``returning`` clause.
    """

    dialect = Dialect.MYSQL

    def placeholder(self, index: int) -> str:
        return "?"

    def quote_identifier(self, identifier: str, identifier_type: str = "identifier") -> str:
        identifier = identifier.strip()
        self._validate_identifier(identifier, identifier_type)
        return f"`{identifier}`"
