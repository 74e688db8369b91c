"""Unit tests for settings loading."""

import pytest
from pydantic import ValidationError

from playground.constants import Dialect, IsolationMode, KeywordCase
from playground.settings import FormatterSettings, SandboxSettings, _reload_settings, get_settings


@pytest.fixture
def fresh_settings(monkeypatch):
    """Reload the settings singleton around a test that patches the environment."""
    for name in (
        "PLAYGROUND_DEFAULT_DIALECT",
        "PLAYGROUND_LOG_LEVEL",
        "PLAYGROUND_SANDBOX_ISOLATION",
        "PLAYGROUND_SANDBOX_TIMEOUT_SECONDS",
        "PLAYGROUND_FORMATTER_KEYWORD_CASE",
        "PLAYGROUND_LOADER_LOAD_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch
    monkeypatch.undo()
    _reload_settings()


class TestDefaults:

    def test_defaults(self, fresh_settings):
        settings = _reload_settings()

        assert settings.default_dialect is Dialect.POSTGRES
        assert settings.log_level == "INFO"
        assert settings.sandbox.isolation is IsolationMode.PROCESS
        assert settings.sandbox.timeout_seconds == 2.0
        assert settings.sandbox.startup_timeout_seconds == 30.0
        assert settings.loader.load_timeout_seconds == 10.0
        assert settings.formatter.default_options.keyword_case is KeywordCase.PRESERVE

    def test_singleton(self, fresh_settings):
        assert get_settings() is get_settings()


class TestEnvironment:

    def test_domain_prefixes(self, fresh_settings):
        fresh_settings.setenv("PLAYGROUND_DEFAULT_DIALECT", "mssql")
        fresh_settings.setenv("PLAYGROUND_SANDBOX_ISOLATION", "inline")
        fresh_settings.setenv("PLAYGROUND_SANDBOX_TIMEOUT_SECONDS", "0.5")
        fresh_settings.setenv("PLAYGROUND_FORMATTER_KEYWORD_CASE", "upper")
        fresh_settings.setenv("PLAYGROUND_LOADER_LOAD_TIMEOUT_SECONDS", "3")

        settings = _reload_settings()

        assert settings.default_dialect is Dialect.MSSQL
        assert settings.sandbox.isolation is IsolationMode.INLINE
        assert settings.sandbox.timeout_seconds == 0.5
        assert settings.formatter.keyword_case is KeywordCase.UPPER
        assert settings.loader.load_timeout_seconds == 3.0

    def test_log_level_is_normalized(self, fresh_settings):
        fresh_settings.setenv("PLAYGROUND_LOG_LEVEL", " debug ")

        assert _reload_settings().log_level == "DEBUG"

    def test_invalid_log_level(self, fresh_settings):
        fresh_settings.setenv("PLAYGROUND_LOG_LEVEL", "chatty")

        with pytest.raises(ValidationError, match="Invalid log level"):
            _reload_settings()


class TestValidation:

    @pytest.mark.parametrize("timeout", [0.0, 61.0])
    def test_sandbox_timeout_bounds(self, timeout):
        with pytest.raises(ValidationError):
            SandboxSettings(timeout_seconds=timeout)

    def test_unknown_start_method(self):
        with pytest.raises(ValidationError, match="Unknown start method"):
            SandboxSettings(start_method="thread")

    def test_formatter_line_width_bounds(self):
        with pytest.raises(ValidationError):
            FormatterSettings(line_width=0)
