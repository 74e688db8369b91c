"""Query and formatting models passed between pipeline stages."""

from typing import Any, Tuple

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from playground.constants import Dialect, KeywordCase
from playground.types.base import PlaygroundBaseModel


class CompiledQuery(PlaygroundBaseModel):
    """SQL template plus ordered parameter values produced by builder code.

    A compiled query is always tagged with the dialect whose builder
    produced it; the formatter refuses to render it for any other dialect.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    sql: str = Field(..., description="SQL template with dialect placeholders")
    parameters: Tuple[Any, ...] = Field(
        default=(),
        description="Parameter values in placeholder order",
    )
    dialect: Dialect = Field(..., description="Dialect that produced the template")

    @field_validator("parameters", mode="before")
    @classmethod
    def coerce_parameters(cls, v: Any) -> Tuple[Any, ...]:
        if v is None:
            return ()
        if isinstance(v, (list, tuple)):
            return tuple(v)
        raise ValueError("parameters must be an ordered sequence")


class FormatOptions(PlaygroundBaseModel):
    """Options controlling how compiled SQL is rendered.

    Field names also accept their camelCase spelling (``inlineParameters``)
    so options coming straight from a browser UI validate unchanged.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    indent_width: int = Field(
        default=2,
        ge=1,
        le=16,
        description="Spaces per indentation level",
    )
    use_tabs: bool = Field(
        default=False,
        description="Indent with tabs instead of spaces",
    )
    keyword_case: KeywordCase = Field(
        default=KeywordCase.PRESERVE,
        description="Casing applied to SQL keywords",
    )
    line_width: int = Field(
        default=80,
        ge=1,
        le=1000,
        description="Queries longer than this are broken into clauses",
    )
    inline_parameters: bool = Field(
        default=False,
        description="Substitute literal parameter values for placeholders",
    )

    @property
    def indent(self) -> str:
        return "\t" if self.use_tabs else " " * self.indent_width


class RunInputs(PlaygroundBaseModel):
    """Immutable snapshot of the inputs a single run was issued with."""
    model_config = ConfigDict(frozen=True)

    source: str
    dialect: Dialect
    options: FormatOptions = Field(default_factory=FormatOptions)
