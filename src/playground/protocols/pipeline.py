"""Pipeline collaborator protocol definitions.

These protocols describe the externally owned collaborators the compile
pipeline talks to: the module supply mechanism and the editor view that
mirrors the formatted SQL.
"""

from typing import Awaitable, Protocol

from typing_extensions import runtime_checkable

from playground.constants import Dialect
from playground.query_builder.module import QueryBuilderModule


@runtime_checkable
class ModuleSupplier(Protocol):
    """Asynchronous source of builder modules.

    How modules are built or fetched is opaque to the loader.
    """

    def __call__(self, dialect: Dialect) -> Awaitable[QueryBuilderModule]:
        """Supply the builder module for ``dialect``."""
        ...


@runtime_checkable
class EditorSink(Protocol):
    """Secondary editor view that displays the formatted SQL."""

    def set_value(self, text: str) -> None:
        """Replace the editor's content."""
        ...
