"""Query Builder Module Factory.

This module resolves the builder module for a dialect by importing the
dialect's package and asking it to describe itself. It is the synchronous
building block behind the module loader's default supplier and is also
used inside sandbox child processes, which rebuild the module locally
instead of receiving it over a pipe.
"""

import importlib

from playground.constants import Dialect
from playground.query_builder.module import QueryBuilderModule


class QueryBuilderFactory:
    """Factory for resolving dialect builder modules.

    Example:
        >>> module = QueryBuilderFactory.create(Dialect.POSTGRES)
        >>> db = module.create_builder()
    """

    @staticmethod
    def create(dialect: Dialect) -> QueryBuilderModule:
        """Import and describe the builder module for ``dialect``.

        Args:
            dialect: Dialect whose builder package should be imported

        Returns:
            QueryBuilderModule for the dialect

        Raises:
            ImportError: If the dialect's builder package cannot be imported
            TypeError: If the package does not describe a module for ``dialect``
        """
        dialect = Dialect(dialect)
        package = importlib.import_module(dialect.builder_module_path)
        module = package.build_module()

        if not isinstance(module, QueryBuilderModule) or module.dialect is not dialect:
            raise TypeError(
                f"{dialect.builder_module_path}.build_module() did not return a "
                f"{dialect.value} QueryBuilderModule"
            )
        return module

    @staticmethod
    def create_from_path(import_path: str) -> QueryBuilderModule:
        """Rebuild a module from the import path recorded on a loaded module."""
        package = importlib.import_module(import_path)
        module = package.build_module()
        if not isinstance(module, QueryBuilderModule):
            raise TypeError(f"{import_path}.build_module() did not return a QueryBuilderModule")
        return module


def get_builder_module(dialect: Dialect) -> QueryBuilderModule:
    """Get the builder module for a dialect."""
    return QueryBuilderFactory.create(dialect)
