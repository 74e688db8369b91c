from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from playground.constants import Dialect
from .base import PlaygroundBaseSettings
from .formatter import FormatterSettings
from .loader import LoaderSettings
from .sandbox import SandboxSettings


class _Settings(PlaygroundBaseSettings):

    model_config = SettingsConfigDict(
        env_prefix="PLAYGROUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__"
    )

    default_dialect: Dialect = Field(
        default=Dialect.POSTGRES,
        description="Dialect selected when the playground starts"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level passed to setup_logging()"
    )

    sandbox: SandboxSettings = Field(
        default_factory=SandboxSettings,
        description="Execution sandbox configuration"
    )
    loader: LoaderSettings = Field(
        default_factory=LoaderSettings,
        description="Module loader configuration"
    )
    formatter: FormatterSettings = Field(
        default_factory=FormatterSettings,
        description="Default SQL format options"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return v


# Singleton instance
_settings: Optional[_Settings] = None


def get_settings(force_reload: bool = False) -> _Settings:
    """Get the singleton settings instance for the application.

    Settings are loaded from environment variables (prefix ``PLAYGROUND_``)
    and an optional ``.env`` file on first access.

    Args:
        force_reload: If True, creates a new Settings instance even if
                     one already exists. Useful for testing or when
                     environment variables have changed.

    Returns:
        Settings: The singleton Settings instance

    Example:
        ```python
        settings = get_settings()
        settings.sandbox.timeout_seconds
        ```
    """
    global _settings

    if _settings is None or force_reload:
        _settings = _Settings()

    return _settings


def _reload_settings() -> _Settings:
    """Force reload of settings.

    This is primarily for testing purposes where you need to reset
    the singleton instance.

    Returns:
        A fresh _Settings instance
    """
    global _settings
    _settings = None
    return get_settings(force_reload=True)
