import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple

from playground.constants import Dialect
from playground.query_builder.queries import (
    Condition,
    DeleteQuery,
    InsertQuery,
    SelectQuery,
    UpdateQuery,
)
from playground.types import CompiledQuery


_IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_ALIAS_PATTERN = re.compile(r'\s+as\s+', re.IGNORECASE)
_MAX_IDENTIFIER_LENGTH = 128


class _Compilation:
    """Parameter accumulator for one ``build_query`` call."""

    def __init__(self, builder: "BaseQueryBuilder"):
        self._builder = builder
        self.parameters: List[Any] = []

    def bind(self, value: Any) -> str:
        self.parameters.append(value)
        return self._builder.placeholder(len(self.parameters))


class BaseQueryBuilder(ABC):
    """Base interface for dialect query builders with identifier validation.

    A query builder turns the immutable query objects created through
    ``db`` into a SQL template and its ordered parameters. Builders never
    execute SQL and never inline values: every value becomes a placeholder.

    Subclasses provide the dialect, identifier quoting and placeholder
    syntax, and may override the paging and ``returning`` hooks.

    Security Principles:
        1. **Input Validation**: Every identifier is validated before use
        2. **No Direct Concatenation**: Values are always bound as parameters
        3. **Whitelist Approach**: Only letters, digits and underscores in identifiers
        4. **Length Limits**: Identifiers are limited to 128 characters
    """

    dialect: Dialect

    @property
    def supports_returning(self) -> bool:
        return self.dialect.supports_returning

    @abstractmethod
    def placeholder(self, index: int) -> str:
        """Return the placeholder for the ``index``-th (1-based) parameter."""
        pass

    @abstractmethod
    def quote_identifier(self, identifier: str, identifier_type: str = "identifier") -> str:
        """Quote a single, already split identifier.

        Args:
            identifier: Identifier to quote
            identifier_type: Type of identifier for error messages

        Returns:
            Quoted identifier
        """
        pass

    def build_query(self, query: Any) -> CompiledQuery:
        """Build SQL template and parameters from a query object.

        Args:
            query: Query object created from ``db``

        Returns:
            CompiledQuery tagged with this builder's dialect

        Raises:
            NotImplementedError: If the query type is not supported
            ValueError: If the query is incomplete or uses invalid identifiers
        """
        query_mapping = {
            SelectQuery: self._build_select,
            InsertQuery: self._build_insert,
            UpdateQuery: self._build_update,
            DeleteQuery: self._build_delete,
        }

        builder_method = query_mapping.get(type(query))
        if builder_method is None:
            raise NotImplementedError(
                f"Query type {type(query).__name__} not supported by {self.__class__.__name__}"
            )

        compilation = _Compilation(self)
        sql = " ".join(part for part in builder_method(query, compilation) if part)
        return CompiledQuery(sql=sql, parameters=tuple(compilation.parameters), dialect=self.dialect)

    def _build_select(self, query: SelectQuery, c: _Compilation) -> List[str]:
        parts = ["select"]
        if query.is_distinct:
            parts.append("distinct")
        parts.extend(self._render_select_prefix(query, c))

        columns = query.columns or ("*",)
        parts.append(", ".join(self.format_column(col) for col in columns))
        parts.append("from")
        parts.append(self.format_table(query.table))

        for join in query.joins:
            parts.append(
                f"{join.kind} {self.format_table(join.table)} on "
                f"{self.format_reference(join.left)} = {self.format_reference(join.right)}"
            )

        parts.extend(self._render_conditions("where", query.wheres, c))

        if query.group_bys:
            parts.append("group by")
            parts.append(", ".join(self.format_reference(col) for col in query.group_bys))

        parts.extend(self._render_conditions("having", query.havings, c))

        if query.order_bys:
            items = []
            for item in query.order_bys:
                rendered = self.format_reference(item.column)
                if item.direction:
                    rendered = f"{rendered} {item.direction}"
                items.append(rendered)
            parts.append("order by")
            parts.append(", ".join(items))

        parts.extend(self._render_paging(query, c))
        return parts

    def _build_insert(self, query: InsertQuery, c: _Compilation) -> List[str]:
        if not query.rows:
            raise ValueError(f"insert into {query.table!r} has no values")

        columns = [name for name, _ in query.rows[0]]
        for row in query.rows[1:]:
            if [name for name, _ in row] != columns:
                raise ValueError("All inserted rows must have the same columns in the same order")

        rows = []
        for row in query.rows:
            rows.append("(" + ", ".join(c.bind(value) for _, value in row) + ")")

        parts = [
            "insert into",
            self.format_table(query.table),
            "(" + ", ".join(self.quote_identifier(col, "column") for col in columns) + ")",
            "values",
            ", ".join(rows),
        ]
        parts.extend(self._render_returning(query.returning_columns))
        return parts

    def _build_update(self, query: UpdateQuery, c: _Compilation) -> List[str]:
        if not query.assignments:
            raise ValueError(f"update {query.table!r} has no assignments")

        assignments = ", ".join(
            f"{self.quote_identifier(col, 'column')} = {c.bind(value)}"
            for col, value in query.assignments
        )
        parts = ["update", self.format_table(query.table), "set", assignments]
        parts.extend(self._render_conditions("where", query.wheres, c))
        parts.extend(self._render_returning(query.returning_columns))
        return parts

    def _build_delete(self, query: DeleteQuery, c: _Compilation) -> List[str]:
        parts = ["delete from", self.format_table(query.table)]
        parts.extend(self._render_conditions("where", query.wheres, c))
        parts.extend(self._render_returning(query.returning_columns))
        return parts

    def _render_select_prefix(self, query: SelectQuery, c: _Compilation) -> List[str]:
        """Dialect hook for text between ``select [distinct]`` and the column list."""
        return []

    def _render_paging(self, query: SelectQuery, c: _Compilation) -> List[str]:
        """Render ``limit`` / ``offset``. Override for dialects without them."""
        parts = []
        if query.limit_value is not None:
            parts.append(f"limit {c.bind(query.limit_value)}")
        if query.offset_value is not None:
            parts.append(f"offset {c.bind(query.offset_value)}")
        return parts

    def _render_returning(self, columns: Sequence[str]) -> List[str]:
        if not columns:
            return []
        return ["returning", ", ".join(self.format_column(col) for col in columns)]

    def _render_conditions(
        self,
        keyword: str,
        conditions: Sequence[Condition],
        c: _Compilation,
    ) -> List[str]:
        if not conditions:
            return []

        rendered = []
        for i, condition in enumerate(conditions):
            text = self._render_condition(condition, c)
            rendered.append(text if i == 0 else f"{condition.connector} {text}")
        return [keyword, " ".join(rendered)]

    def _render_condition(self, condition: Condition, c: _Compilation) -> str:
        lhs = self.format_reference(condition.lhs)

        if condition.rhs_is_ref:
            return f"{lhs} {condition.op} {self.format_reference(condition.rhs)}"

        if condition.op in ("in", "not in"):
            values = ", ".join(c.bind(value) for value in condition.rhs)
            return f"{lhs} {condition.op} ({values})"

        if condition.op in ("is", "is not") and condition.rhs is None:
            return f"{lhs} {condition.op} null"

        return f"{lhs} {condition.op} {c.bind(condition.rhs)}"

    def format_table(self, table: str) -> str:
        """Format ``schema.table as alias`` with every part quoted."""
        name, alias = self._split_alias(table, "table")
        rendered = self.format_reference(name, "table")
        if alias:
            rendered = f"{rendered} as {self.quote_identifier(alias, 'alias')}"
        return rendered

    def format_column(self, column: str) -> str:
        """Format a selected column, allowing ``table.column as alias`` and ``*``."""
        name, alias = self._split_alias(column, "column")
        rendered = self.format_reference(name)
        if alias:
            rendered = f"{rendered} as {self.quote_identifier(alias, 'alias')}"
        return rendered

    def format_reference(self, reference: str, identifier_type: str = "column") -> str:
        """Quote a dotted reference such as ``schema.table.column``."""
        if not isinstance(reference, str):
            raise ValueError(f"Expected a {identifier_type} name, got {type(reference).__name__}")

        parts = [part.strip() for part in reference.split(".")]
        if len(parts) > 3:
            raise ValueError(f"Too many name parts in {identifier_type}: {reference}")

        rendered = []
        for i, part in enumerate(parts):
            if part == "*" and i == len(parts) - 1 and identifier_type == "column":
                rendered.append("*")
            else:
                rendered.append(self.quote_identifier(part, identifier_type))
        return ".".join(rendered)

    def _split_alias(self, text: str, identifier_type: str) -> Tuple[str, Optional[str]]:
        if not isinstance(text, str):
            raise ValueError(f"Expected a {identifier_type} name, got {type(text).__name__}")

        pieces = _ALIAS_PATTERN.split(text.strip())
        if len(pieces) == 1:
            return pieces[0], None
        if len(pieces) == 2:
            return pieces[0], pieces[1]
        raise ValueError(f"Invalid {identifier_type} expression: {text}")

    def _validate_identifier(self, identifier: str, identifier_type: str = "identifier") -> None:
        """Validate an identifier for SQL injection protection.

        Args:
            identifier: The identifier to validate
            identifier_type: Type of identifier for error messages

        Raises:
            ValueError: If identifier is invalid
        """
        if not identifier:
            raise ValueError(f"Empty {identifier_type} name")

        if len(identifier) > _MAX_IDENTIFIER_LENGTH:
            raise ValueError(f"{identifier_type} name too long: {identifier}")

        if not _IDENTIFIER_PATTERN.match(identifier):
            raise ValueError(f"Invalid {identifier_type} name: {identifier}")
