from pydantic import Field
from pydantic_settings import SettingsConfigDict

from .base import PlaygroundBaseSettings


class LoaderSettings(PlaygroundBaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PLAYGROUND_LOADER_"
    )

    load_timeout_seconds: float = Field(
        default=10.0,
        ge=0.1,
        le=300.0,
        description="Maximum time to wait for a builder module to be supplied"
    )
