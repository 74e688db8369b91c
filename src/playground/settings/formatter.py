from pydantic import Field
from pydantic_settings import SettingsConfigDict

from playground.constants import KeywordCase
from playground.types import FormatOptions
from .base import PlaygroundBaseSettings


class FormatterSettings(PlaygroundBaseSettings):
    """Default format options applied when the UI supplies none."""

    model_config = SettingsConfigDict(
        env_prefix="PLAYGROUND_FORMATTER_"
    )

    indent_width: int = Field(default=2, ge=1, le=16)
    use_tabs: bool = Field(default=False)
    keyword_case: KeywordCase = Field(default=KeywordCase.PRESERVE)
    line_width: int = Field(default=80, ge=1, le=1000)
    inline_parameters: bool = Field(default=False)

    @property
    def default_options(self) -> FormatOptions:
        return FormatOptions(
            indent_width=self.indent_width,
            use_tabs=self.use_tabs,
            keyword_case=self.keyword_case,
            line_width=self.line_width,
            inline_parameters=self.inline_parameters,
        )
