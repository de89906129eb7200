"""Tests for configuration settings."""
import pytest
from pydantic import ValidationError

from flowrun.config.settings import Settings, get_settings, reset_settings


class TestSettings:
    """Test Settings configuration."""

    def test_default_values(self, monkeypatch):
        """Test default values are set correctly."""
        monkeypatch.delenv("FLOWRUN_OPENAI_API_KEY", raising=False)

        settings = Settings()

        # env is 'test' under conftest
        assert settings.env in ("development", "test")
        assert settings.log_level == "INFO"
        assert settings.default_node_timeout_s == 30
        assert settings.http_timeout_s == 30
        assert settings.openai_api_key is None
        assert settings.openai_default_model == "gpt-3.5-turbo"
        assert settings.job_max_retries == 3
        assert settings.celery_task_time_limit == 300
        assert settings.celery_task_soft_time_limit == 270

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("FLOWRUN_DEFAULT_NODE_TIMEOUT_S", "5")
        monkeypatch.setenv("FLOWRUN_OPENAI_API_KEY", "sk-test")

        settings = Settings()

        assert settings.default_node_timeout_s == 5
        assert settings.openai_api_key.get_secret_value() == "sk-test"
        assert settings.redis_url == "redis://localhost:6379/1"

    def test_timeouts_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("FLOWRUN_HTTP_TIMEOUT_S", "0")
        with pytest.raises(ValidationError):
            Settings()

    def test_retries_not_negative(self, monkeypatch):
        monkeypatch.setenv("FLOWRUN_JOB_MAX_RETRIES", "-1")
        with pytest.raises(ValidationError):
            Settings()

    def test_secret_not_in_repr(self, monkeypatch):
        monkeypatch.setenv("FLOWRUN_OPENAI_API_KEY", "sk-very-secret")
        assert "sk-very-secret" not in repr(Settings())


class TestGetSettings:
    """Test the cached accessor."""

    def test_cached_until_reset(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("FLOWRUN_LOG_LEVEL", "DEBUG")
        reset_settings()
        assert get_settings() is not first
        assert get_settings().log_level == "DEBUG"
