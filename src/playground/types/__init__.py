"""Shared data models for the playground."""

from playground.types.base import PlaygroundBaseModel
from playground.types.query import CompiledQuery, FormatOptions, RunInputs
from playground.types.state import DEFAULT_SOURCE, SharedState

__all__ = [
    "PlaygroundBaseModel",
    "CompiledQuery",
    "FormatOptions",
    "RunInputs",
    "SharedState",
    "DEFAULT_SOURCE",
]
