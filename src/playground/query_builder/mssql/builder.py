"""SQL Server query builder."""

from typing import List

from playground.constants import Dialect
from playground.query_builder.base import BaseQueryBuilder, _Compilation
from playground.query_builder.queries import SelectQuery


class MsSqlQueryBuilder(BaseQueryBuilder):
    """Query builder for Microsoft SQL Server.

    Uses bracketed identifiers and numbered ``@n`` placeholders. SQL Server
    has no ``limit``: a bare limit renders as ``top (@n)``, and an offset
    renders as ``offset @n rows [fetch next @m rows only]``, which SQL
    Server only accepts after an ``order by``.
    """

    dialect = Dialect.MSSQL

    def placeholder(self, index: int) -> str:
        return f"@{index}"

    def quote_identifier(self, identifier: str, identifier_type: str = "identifier") -> str:
        identifier = identifier.strip().replace("]", '').replace("[", '')
        self._validate_identifier(identifier, identifier_type)
        return f"[{identifier}]"

    def _render_select_prefix(self, query: SelectQuery, c: _Compilation) -> List[str]:
        if query.limit_value is not None and query.offset_value is None:
            return [f"top ({c.bind(query.limit_value)})"]
        return []

    def _render_paging(self, query: SelectQuery, c: _Compilation) -> List[str]:
        if query.offset_value is None:
            return []

        if not query.order_bys:
            raise ValueError("mssql requires order_by when offset is used")

        parts = [f"offset {c.bind(query.offset_value)} rows"]
        if query.limit_value is not None:
            parts.append(f"fetch next {c.bind(query.limit_value)} rows only")
        return parts
