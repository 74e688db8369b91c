"""Fluent, dialect-aware query builders.

This module provides the builder API that playground source code is written
against. Query builders translate immutable query objects into a SQL
template plus ordered parameters but do NOT execute or format SQL - that's
handled by the sandbox and the formatter.

Architecture:
    The query builder module is organized by dialect:
    - postgres/, mysql/, sqlite/, mssql/: One builder package per dialect,
      each exposing ``build_module()``
    - base.py: Abstract base class for all builders
    - queries.py: Immutable fluent query objects and the ``db`` entry point
    - module.py: Capability handle handed out by the module loader
    - factory.py: Import-based resolution of a dialect's module

Design Principles:
    1. **SQL Generation Only**: Builders only generate SQL templates
    2. **Dialect-Specific**: Quoting, placeholders and paging per dialect
    3. **Values Are Parameters**: Values never appear in the template
    4. **Immutable Queries**: Every fluent call returns a new query

Example:
    >>> from playground.query_builder import get_builder_module
    >>> db = get_builder_module(Dialect.POSTGRES).create_builder()
    >>> db.select_from("table").select("col").compile().sql
    'select "col" from "table"'
"""

from playground.query_builder.base import BaseQueryBuilder
from playground.query_builder.factory import QueryBuilderFactory, get_builder_module
from playground.query_builder.module import QueryBuilderModule
from playground.query_builder.queries import (
    QUERY_TYPES,
    DeleteQuery,
    InsertQuery,
    QueryCreator,
    SelectQuery,
    UpdateQuery,
)

__all__ = [
    "BaseQueryBuilder",
    "QueryBuilderFactory",
    "QueryBuilderModule",
    "get_builder_module",
    "QueryCreator",
    "SelectQuery",
    "InsertQuery",
    "UpdateQuery",
    "DeleteQuery",
    "QUERY_TYPES",
]
