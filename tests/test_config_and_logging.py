"""Tests for settings loading and correlation-id logging helpers."""

import pytest

from scout.core.config import Settings, get_settings
from scout.core.exceptions import ConfigurationError
from scout.core.logging import clear_correlation_id, get_correlation_id, set_correlation_id


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SCOUT_MAX_COMPETITORS", raising=False)
        monkeypatch.delenv("SCOUT_FETCH_TIMEOUT", raising=False)
        settings = Settings(_env_file=None)

        assert settings.max_competitors == 5
        assert settings.fetch_timeout == 30.0
        assert settings.max_content_chars == 50_000
        assert settings.csv_context_rows == 100

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("SCOUT_MAX_COMPETITORS", "3")
        monkeypatch.setenv("DEBUG", "yes")

        settings = get_settings()

        assert settings.openai_api_key == "sk-env"
        assert settings.max_competitors == 3
        assert settings.debug is True
        assert get_settings() is settings

    def test_blank_key_counts_as_missing(self):
        settings = Settings(_env_file=None, openai_api_key="   ")

        assert not settings.has_llm_credential
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            settings.require_llm_credential()

    def test_require_returns_key(self, settings):
        assert settings.require_llm_credential() == "test-key"


class TestCorrelationId:
    def teardown_method(self):
        clear_correlation_id()

    def test_generated_when_absent(self):
        correlation_id = set_correlation_id()

        assert len(correlation_id) == 8
        assert get_correlation_id() == correlation_id

    def test_explicit_value_is_bound_and_cleared(self):
        set_correlation_id("req-1")
        assert get_correlation_id() == "req-1"

        clear_correlation_id()
        assert get_correlation_id() is None
