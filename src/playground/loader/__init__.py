"""Module loader: obtains and caches the builder module for each dialect."""

from playground.loader.loader import ModuleLoader
from playground.loader.supplier import import_supplier

__all__ = [
    "ModuleLoader",
    "import_supplier",
]
