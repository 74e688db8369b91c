"""SQL dialect constants.

This module contains the closed set of SQL dialects supported by the
playground together with the lexical conventions each one uses. These
constants sit at the bottom of the dependency graph and can be imported
from any layer without creating circular imports.
"""

from enum import Enum


class PlaceholderStyle(str, Enum):
    """Parameter placeholder syntax emitted by a dialect's builder.

    Values:
        QUESTION: Positional ``?`` markers (MySQL, SQLite).
        DOLLAR: Numbered ``$1, $2, ...`` markers (PostgreSQL).
        AT: Numbered ``@1, @2, ...`` markers (SQL Server).
    """

    QUESTION = "question"
    DOLLAR = "dollar"
    AT = "at"

    @property
    def is_numbered(self) -> bool:
        return self is not PlaceholderStyle.QUESTION


class KeywordCase(str, Enum):
    """Keyword casing applied by the formatter."""

    PRESERVE = "preserve"
    UPPER = "upper"
    LOWER = "lower"


class Dialect(str, Enum):
    """Supported SQL dialects.

    Each dialect selects one builder implementation, one identifier quoting
    convention and one placeholder style. The value doubles as the name of
    the dialect's builder package under ``playground.query_builder``.

    Values:
        POSTGRES: PostgreSQL
            - Double-quoted identifiers
            - ``$n`` placeholders
            - ``returning`` support
        MYSQL: MySQL / MariaDB
            - Backtick identifiers
            - ``?`` placeholders
        SQLITE: SQLite
            - Double-quoted identifiers
            - ``?`` placeholders
            - ``returning`` support
        MSSQL: Microsoft SQL Server
            - Bracketed identifiers
            - ``@n`` placeholders
            - ``top`` / ``offset ... fetch`` paging
    """

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MSSQL = "mssql"

    @property
    def sqlglot_dialect(self) -> str:
        """Name of the equivalent sqlglot dialect."""
        return _SQLGLOT_DIALECTS[self]

    @property
    def placeholder_style(self) -> PlaceholderStyle:
        return _PLACEHOLDER_STYLES[self]

    @property
    def identifier_quotes(self) -> tuple:
        """Opening and closing identifier quote characters."""
        return _IDENTIFIER_QUOTES[self]

    @property
    def supports_returning(self) -> bool:
        return self in (Dialect.POSTGRES, Dialect.SQLITE)

    @property
    def builder_module_path(self) -> str:
        """Import path of the package providing this dialect's builder."""
        return f"playground.query_builder.{self.value}"


_SQLGLOT_DIALECTS = {
    Dialect.POSTGRES: "postgres",
    Dialect.MYSQL: "mysql",
    Dialect.SQLITE: "sqlite",
    Dialect.MSSQL: "tsql",
}

_PLACEHOLDER_STYLES = {
    Dialect.POSTGRES: PlaceholderStyle.DOLLAR,
    Dialect.MYSQL: PlaceholderStyle.QUESTION,
    Dialect.SQLITE: PlaceholderStyle.QUESTION,
    Dialect.MSSQL: PlaceholderStyle.AT,
}

_IDENTIFIER_QUOTES = {
    Dialect.POSTGRES: ('"', '"'),
    Dialect.MYSQL: ("`", "`"),
    Dialect.SQLITE: ('"', '"'),
    Dialect.MSSQL: ("[", "]"),
}
