from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from playground.constants import IsolationMode
from .base import PlaygroundBaseSettings


class SandboxSettings(PlaygroundBaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PLAYGROUND_SANDBOX_"
    )

    isolation: IsolationMode = Field(
        default=IsolationMode.PROCESS,
        description="Where user source runs: 'process' (spawned child, killed on timeout) "
                    "or 'inline' (worker thread, cannot be stopped on timeout)"
    )
    timeout_seconds: float = Field(
        default=2.0,
        ge=0.1,
        le=60.0,
        description="Maximum wall-clock time for one execution of user source"
    )
    max_source_length: int = Field(
        default=20_000,
        ge=1,
        le=1_000_000,
        description="Longest source text (in characters) accepted by the sandbox"
    )
    startup_timeout_seconds: float = Field(
        default=30.0,
        ge=0.1,
        le=300.0,
        description="Maximum time for a sandbox child process to start and report ready; "
                    "not counted against timeout_seconds"
    )
    start_method: str = Field(
        default="spawn",
        description="multiprocessing start method for sandbox child processes"
    )

    @field_validator("start_method")
    @classmethod
    def validate_start_method(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("spawn", "forkserver", "fork"):
            raise ValueError(f"Unknown start method: {v}. Use 'spawn', 'forkserver' or 'fork'")
        return v
