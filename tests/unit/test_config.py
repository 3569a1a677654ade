"""Tests for configuration module."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from steam_catalog.config import (
    LoggingConfig,
    QueryConfig,
    RetryConfig,
    Settings,
    StorageConfig,
    SteamAPIConfig,
    SyncConfig,
)


class TestSteamAPIConfig:
    """Tests for Steam API configuration."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            config = SteamAPIConfig()

        assert config.store_url == "https://store.steampowered.com/api"
        assert config.app_list_url.endswith("ISteamApps/GetAppList/v2/")
        assert config.app_list_fallback_url.endswith("steamcmd_appid.json")
        assert config.country_code == "cn"
        assert config.language == "schinese"

    def test_region_from_env(self) -> None:
        """Test region override through environment."""
        with patch.dict(os.environ, {"STEAM_COUNTRY_CODE": "us", "STEAM_LANGUAGE": "english"}):
            config = SteamAPIConfig()

        assert config.country_code == "us"
        assert config.language == "english"

    def test_country_code_length(self) -> None:
        """Test that country codes are two letters."""
        with pytest.raises(ValueError):
            SteamAPIConfig(country_code="usa")


class TestRetryConfig:
    """Tests for retry configuration."""

    def test_default_values(self) -> None:
        config = RetryConfig()

        assert config.max_attempts == 5
        assert config.rate_limit_cooldown_seconds == 60.0

    def test_max_attempts_bounds(self) -> None:
        with pytest.raises(ValueError):
            RetryConfig(max_attempts=0)

        with pytest.raises(ValueError):
            RetryConfig(max_attempts=11)


class TestSyncConfig:
    """Tests for sync run configuration."""

    def test_default_values(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = SyncConfig()

        assert config.batch_size == 5
        assert config.delay_seconds == 1.5
        assert config.max_runtime_minutes == 20.0
        assert config.max_runtime_seconds == 1200.0
        assert config.include_player_counts is False

    def test_from_env(self) -> None:
        """Test the per-variant knobs are plain settings."""
        with patch.dict(
            os.environ,
            {"SYNC_BATCH_SIZE": "3", "SYNC_DELAY_SECONDS": "2", "SYNC_MAX_RUNTIME_MINUTES": "5"},
        ):
            config = SyncConfig()

        assert config.batch_size == 3
        assert config.delay_seconds == 2.0
        assert config.max_runtime_seconds == 300.0

    def test_batch_size_bounds(self) -> None:
        with pytest.raises(ValueError):
            SyncConfig(batch_size=0)

        with pytest.raises(ValueError):
            SyncConfig(batch_size=50)

    def test_runtime_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            SyncConfig(max_runtime_minutes=0)


class TestStorageConfig:
    """Tests for storage configuration."""

    def test_paths(self, tmp_path: Path) -> None:
        config = StorageConfig(data_dir=tmp_path)

        assert config.catalog_path == tmp_path / "steam_games.json"
        assert config.progress_path == tmp_path / "sync_progress.json"

    def test_file_name_cannot_escape_data_dir(self) -> None:
        with pytest.raises(ValueError):
            StorageConfig(catalog_file="../games.json")

        with pytest.raises(ValueError):
            StorageConfig(progress_file="")


class TestQueryConfig:
    """Tests for query configuration."""

    def test_default_values(self) -> None:
        config = QueryConfig()

        assert config.default_page_size == 24
        assert config.max_page_size == 100
        assert config.cache_ttl_seconds == 300.0


class TestLoggingConfig:
    """Tests for logging configuration."""

    def test_default_values(self) -> None:
        """Test default logging configuration."""
        with patch.dict(os.environ, {}, clear=True):
            config = LoggingConfig()

        assert config.level == "INFO"
        assert config.format == "json"

    def test_level_validation(self) -> None:
        """Test that invalid log levels are rejected."""
        with pytest.raises(ValueError):
            LoggingConfig(level="VERBOSE")  # type: ignore[arg-type]


class TestSettings:
    """Tests for aggregated settings."""

    def test_sections_load_without_env(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.environment == "development"
        assert settings.is_production is False
        assert settings.sync.batch_size == 5
        assert settings.storage.catalog_file == "steam_games.json"

    def test_production_flag(self) -> None:
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.is_production is True
