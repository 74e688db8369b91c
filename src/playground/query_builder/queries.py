"""Fluent query objects exposed to playground source code.

Every query object is immutable: each fluent call returns a new object and
leaves the receiver untouched, so a partially built query can be reused to
branch into several queries. Query objects only record what was asked for;
turning them into SQL is the job of the dialect's query builder, reached
through ``compile()``.

Example:
    >>> q = db.select_from("person as p").select("p.id", "p.first_name")
    >>> q.where("p.id", "=", 7).compile().sql
    'select "p"."id", "p"."first_name" from "person" as "p" where "p"."id" = $1'
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Tuple, Union

from playground.constants import Dialect
from playground.types import CompiledQuery

if TYPE_CHECKING:
    from playground.query_builder.base import BaseQueryBuilder


COMPARISON_OPERATORS = frozenset({
    "=", "<>", "!=", "<", "<=", ">", ">=",
    "like", "not like", "ilike", "not ilike",
    "in", "not in", "is", "is not",
})

SCALAR_TYPES = (type(None), bool, int, float, Decimal, str, bytes, date, datetime, time)


def _normalize_operator(op: str) -> str:
    if not isinstance(op, str):
        raise ValueError(f"Operator must be a string, got {type(op).__name__}")
    normalized = " ".join(op.lower().split())
    if normalized not in COMPARISON_OPERATORS:
        raise ValueError(f"Unsupported operator: {op!r}")
    return normalized


def _check_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        for item in value:
            _check_value(item)
        return tuple(value)
    if not isinstance(value, SCALAR_TYPES):
        raise ValueError(f"Unsupported value type: {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Condition:
    """A single ``lhs op rhs`` predicate joined to its predecessor by ``connector``."""

    connector: str
    lhs: str
    op: str
    rhs: Any
    rhs_is_ref: bool = False


@dataclass(frozen=True)
class Join:
    kind: str
    table: str
    left: str
    right: str


@dataclass(frozen=True)
class OrderItem:
    column: str
    direction: Optional[str] = None


@dataclass(frozen=True)
class _Query:
    """Common plumbing for all query objects."""

    _compiler: "BaseQueryBuilder" = field(repr=False, compare=False)

    @property
    def dialect(self) -> Dialect:
        return self._compiler.dialect

    def compile(self) -> CompiledQuery:
        """Compile this query into a SQL template and ordered parameters."""
        return self._compiler.build_query(self)


@dataclass(frozen=True)
class _FilterableQuery(_Query):
    wheres: Tuple[Condition, ...] = ()

    def where(self, lhs: str, op: str, value: Any):
        """Add a predicate joined with ``and``."""
        return self._add_where("and", lhs, op, value)

    def or_where(self, lhs: str, op: str, value: Any):
        """Add a predicate joined with ``or``."""
        return self._add_where("or", lhs, op, value)

    def where_ref(self, lhs: str, op: str, rhs: str):
        """Add a predicate comparing two columns."""
        normalized = _normalize_operator(op)
        if normalized in ("in", "not in", "is", "is not"):
            raise ValueError(f"Operator {op!r} cannot compare two columns")
        condition = Condition("and", lhs, normalized, rhs, rhs_is_ref=True)
        return replace(self, wheres=self.wheres + (condition,))

    def _add_where(self, connector: str, lhs: str, op: str, value: Any):
        condition = self._make_condition(connector, lhs, op, value)
        return replace(self, wheres=self.wheres + (condition,))

    def _make_condition(self, connector: str, lhs: str, op: str, value: Any) -> Condition:
        normalized = _normalize_operator(op)
        if normalized in ("ilike", "not ilike") and self.dialect is not Dialect.POSTGRES:
            raise ValueError(f"Operator {op!r} is only supported by postgres")
        if normalized in ("in", "not in"):
            if not isinstance(value, (list, tuple)) or not value:
                raise ValueError(f"Operator {op!r} requires a non-empty list of values")
        elif isinstance(value, (list, tuple)):
            raise ValueError(f"Operator {op!r} does not accept a list of values")
        return Condition(connector, lhs, normalized, _check_value(value))


@dataclass(frozen=True)
class _ReturningMixin:
    returning_columns: Tuple[str, ...] = ()

    def returning(self, *columns: str):
        """Return the given columns from the affected rows."""
        if not self._compiler.supports_returning:
            raise NotImplementedError(
                f"returning is not supported by the {self.dialect.value} dialect"
            )
        if not columns:
            raise ValueError("returning requires at least one column")
        return replace(self, returning_columns=self.returning_columns + tuple(columns))


@dataclass(frozen=True)
class SelectQuery(_FilterableQuery):
    table: str = ""
    columns: Tuple[str, ...] = ()
    is_distinct: bool = False
    joins: Tuple[Join, ...] = ()
    group_bys: Tuple[str, ...] = ()
    havings: Tuple[Condition, ...] = ()
    order_bys: Tuple[OrderItem, ...] = ()
    limit_value: Optional[int] = None
    offset_value: Optional[int] = None

    def select(self, *columns: str) -> "SelectQuery":
        if not columns:
            raise ValueError("select requires at least one column")
        return replace(self, columns=self.columns + tuple(columns))

    def select_all(self, table: Optional[str] = None) -> "SelectQuery":
        column = f"{table}.*" if table else "*"
        return replace(self, columns=self.columns + (column,))

    def distinct(self) -> "SelectQuery":
        return replace(self, is_distinct=True)

    def inner_join(self, table: str, left: str, right: str) -> "SelectQuery":
        return self._join("inner join", table, left, right)

    def left_join(self, table: str, left: str, right: str) -> "SelectQuery":
        return self._join("left join", table, left, right)

    def right_join(self, table: str, left: str, right: str) -> "SelectQuery":
        return self._join("right join", table, left, right)

    def _join(self, kind: str, table: str, left: str, right: str) -> "SelectQuery":
        return replace(self, joins=self.joins + (Join(kind, table, left, right),))

    def group_by(self, *columns: str) -> "SelectQuery":
        if not columns:
            raise ValueError("group_by requires at least one column")
        return replace(self, group_bys=self.group_bys + tuple(columns))

    def having(self, lhs: str, op: str, value: Any) -> "SelectQuery":
        condition = self._make_condition("and", lhs, op, value)
        return replace(self, havings=self.havings + (condition,))

    def order_by(self, column: str, direction: Optional[str] = None) -> "SelectQuery":
        if direction is not None:
            direction = str(direction).lower()
            if direction not in ("asc", "desc"):
                raise ValueError(f"Invalid order direction: {direction!r}")
        return replace(self, order_bys=self.order_bys + (OrderItem(column, direction),))

    def limit(self, count: int) -> "SelectQuery":
        return replace(self, limit_value=_check_count("limit", count))

    def offset(self, count: int) -> "SelectQuery":
        return replace(self, offset_value=_check_count("offset", count))


@dataclass(frozen=True)
class InsertQuery(_ReturningMixin, _Query):
    table: str = ""
    rows: Tuple[Tuple[Tuple[str, Any], ...], ...] = ()

    def values(self, rows: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]) -> "InsertQuery":
        """Add one row (a mapping) or several rows (a list of mappings)."""
        if isinstance(rows, Mapping):
            rows = [rows]
        added = []
        for row in rows:
            if not isinstance(row, Mapping) or not row:
                raise ValueError("values expects non-empty mappings of column to value")
            added.append(tuple((str(k), _check_value(v)) for k, v in row.items()))
        if not added:
            raise ValueError("values expects at least one row")
        return replace(self, rows=self.rows + tuple(added))


@dataclass(frozen=True)
class UpdateQuery(_ReturningMixin, _FilterableQuery):
    table: str = ""
    assignments: Tuple[Tuple[str, Any], ...] = ()

    def set(self, values: Mapping[str, Any]) -> "UpdateQuery":
        if not isinstance(values, Mapping) or not values:
            raise ValueError("set expects a non-empty mapping of column to value")
        added = tuple((str(k), _check_value(v)) for k, v in values.items())
        return replace(self, assignments=self.assignments + added)


@dataclass(frozen=True)
class DeleteQuery(_ReturningMixin, _FilterableQuery):
    table: str = ""


def _check_count(name: str, count: Any) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValueError(f"{name} expects a non-negative integer, got {count!r}")
    return count


class QueryCreator:
    """Entry point bound to ``db`` in playground source.

    Example:
        >>> db.insert_into("person").values({"first_name": "Jennifer"})
        >>> db.update_table("person").set({"age": 40}).where("id", "=", 1)
        >>> db.delete_from("person").where("id", "in", [1, 2])
    """

    def __init__(self, compiler: "BaseQueryBuilder"):
        self._compiler = compiler

    @property
    def dialect(self) -> Dialect:
        return self._compiler.dialect

    def select_from(self, table: str) -> SelectQuery:
        return SelectQuery(self._compiler, table=table)

    def insert_into(self, table: str) -> InsertQuery:
        return InsertQuery(self._compiler, table=table)

    def update_table(self, table: str) -> UpdateQuery:
        return UpdateQuery(self._compiler, table=table)

    def delete_from(self, table: str) -> DeleteQuery:
        return DeleteQuery(self._compiler, table=table)

    def __repr__(self) -> str:
        return f"QueryCreator(dialect={self.dialect.value!r})"


QUERY_TYPES = (SelectQuery, InsertQuery, UpdateQuery, DeleteQuery)
