"""Protocol definitions for the playground.

Protocols provide type-safe interfaces without requiring inheritance,
following Python's structural subtyping.
"""

from .pipeline import EditorSink, ModuleSupplier

__all__ = [
    "EditorSink",
    "ModuleSupplier",
]
