"""Shared playground state snapshot.

A shared state is what a share link restores: dialect, builder version and
the query source. Incoming payloads are untrusted, so every field is
validated on its own and falls back to its default when invalid.
"""

import re
from typing import Any, Mapping, Optional

from pydantic import ConfigDict, Field

from playground.__version__ import __version__
from playground.constants import Dialect
from playground.types.base import PlaygroundBaseModel

DEFAULT_SOURCE = 'db.select_from("person").select("id", "first_name").where("id", "=", 1)\n'

_VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+([.\-+][0-9A-Za-z.\-]+)?$")


class SharedState(PlaygroundBaseModel):
    """Validated snapshot of the user-facing playground state."""
    model_config = ConfigDict(frozen=True)

    dialect: Dialect = Field(default=Dialect.POSTGRES)
    # Informational: the loader always supplies the installed builder.
    builder_version: str = Field(default=__version__)
    source: str = Field(default=DEFAULT_SOURCE)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "SharedState":
        """Build a state from an untrusted mapping.

        Unknown keys are ignored. Each known key whose value does not
        validate is replaced by that field's default, independently of the
        other keys.

        Args:
            data: Decoded share payload (may be None or not a mapping)

        Returns:
            SharedState with every field valid
        """
        if not isinstance(data, Mapping):
            return cls()

        values = {}

        dialect = data.get("dialect")
        if isinstance(dialect, str):
            try:
                values["dialect"] = Dialect(dialect)
            except ValueError:
                pass

        version = data.get("builder_version")
        if isinstance(version, str) and _VERSION_PATTERN.match(version):
            values["builder_version"] = version

        source = data.get("source")
        if isinstance(source, str):
            values["source"] = source

        return cls(**values)
