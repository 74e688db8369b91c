"""Settings module providing configuration management for the playground.

Built on Pydantic Settings: type-safe configuration with automatic
validation, loaded from environment variables and an optional ``.env``
file.

Architecture:
    1. Base Layer (base.py):
       - PlaygroundBaseSettings: Base class with common configuration
    2. Domain Settings:
       - sandbox.py: Execution sandbox isolation, timeout and limits
       - loader.py: Module loader timeout
       - formatter.py: Default SQL format options
    3. Main Aggregator (main.py):
       - _Settings: Aggregates all domain settings
       - get_settings(): Singleton factory function

Environment Variable Naming:
    - Format: PLAYGROUND_SETTING_NAME
    - Nested: Use double underscore __ (e.g., PLAYGROUND_SANDBOX__TIMEOUT_SECONDS)
    - Domain settings also read PLAYGROUND_SANDBOX_*, PLAYGROUND_LOADER_*
      and PLAYGROUND_FORMATTER_* directly

Quick Start:
    >>> from playground.settings import get_settings
    >>> settings = get_settings()
    >>> settings.sandbox.isolation
    <IsolationMode.PROCESS: 'process'>
"""

from .main import _Settings, get_settings, _reload_settings
from .base import PlaygroundBaseSettings
from .sandbox import SandboxSettings
from .loader import LoaderSettings
from .formatter import FormatterSettings

__all__ = [
    "get_settings",
    "PlaygroundBaseSettings",
    "SandboxSettings",
    "LoaderSettings",
    "FormatterSettings",
]
