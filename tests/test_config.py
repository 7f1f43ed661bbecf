"""Tests for configuration settings."""

from datetime import timedelta

import pytest

from github_org_mirror.config import RetryConfig, Settings, SyncConfig, get_settings


class TestSettings:
    """Tests for Settings class."""

    def test_settings_defaults(self):
        """Test default values are correct."""
        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite+aiosqlite:///./github_org_mirror.db"
        assert settings.github_token == ""
        assert settings.github_org == ""
        assert settings.target_project_name == ""
        assert settings.environment == "development"
        assert settings.log_level == "INFO"

    def test_settings_from_env(self, monkeypatch):
        """Test environment variables override defaults."""
        monkeypatch.setenv("GITHUB_TOKEN", "test_token_123")
        monkeypatch.setenv("GITHUB_ORG", "prebid")
        monkeypatch.setenv("TARGET_PROJECT_NAME", "Roadmap")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.github_token == "test_token_123"
        assert settings.github_org == "prebid"
        assert settings.target_project_name == "Roadmap"
        assert settings.log_level == "DEBUG"

    def test_nested_settings_from_env(self, monkeypatch):
        """Nested sections use the double underscore delimiter."""
        monkeypatch.setenv("SYNC__COMMIT_BATCH_SIZE", "10")
        monkeypatch.setenv("SYNC__BACKFILL_CHUNK_DAYS", "3")
        monkeypatch.setenv("RETRY__DEFAULT_RATE_LIMIT_WAIT_MS", "30000")

        settings = Settings(_env_file=None)

        assert settings.sync.commit_batch_size == 10
        assert settings.sync.backfill_chunk == timedelta(days=3)
        assert settings.retry.default_rate_limit_wait_ms == 30000

    def test_settings_log_level_validation(self, monkeypatch):
        """Test that invalid log level is rejected."""
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        """get_settings returns the same instance."""
        assert get_settings() is get_settings()


class TestSyncConfig:
    """Tests for SyncConfig."""

    def test_defaults(self):
        config = SyncConfig()
        assert config.commit_batch_size == 25
        assert config.page_size == 50
        assert config.backfill_chunk == timedelta(days=1)

    def test_batch_size_bounds(self):
        with pytest.raises(ValueError):
            SyncConfig(commit_batch_size=0)
        with pytest.raises(ValueError):
            SyncConfig(page_size=101)


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_defaults(self):
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.base_delay_ms == 500
        assert config.backoff_factor == 2.0
        assert config.max_rate_limit_retries == 10
        assert config.default_rate_limit_wait_ms == 60000

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            RetryConfig(max_attempts=0)
