"""Builder module capability handle.

A ``QueryBuilderModule`` is what the module loader hands to the execution
sandbox: an immutable description of one dialect's builder implementation
plus the one operation consumers need, creating a fresh ``db`` entry point.
"""

from dataclasses import dataclass, field
from typing import Type

from playground.constants import Dialect
from playground.query_builder.base import BaseQueryBuilder
from playground.query_builder.queries import QueryCreator


@dataclass(frozen=True)
class QueryBuilderModule:
    """Loaded builder implementation for exactly one dialect.

    Attributes:
        dialect: Dialect the builder renders
        version: Builder implementation version
        import_path: Import path the module was loaded from; used to
            re-resolve the module inside the sandbox child process
        builder_class: Concrete BaseQueryBuilder subclass
    """

    dialect: Dialect
    version: str
    import_path: str
    builder_class: Type[BaseQueryBuilder] = field(repr=False)

    def create_builder(self) -> QueryCreator:
        """Create a fresh ``db`` entry point with its own builder instance."""
        return QueryCreator(self.builder_class())
