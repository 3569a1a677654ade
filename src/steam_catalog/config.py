"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation,
type coercion, and sensible defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SteamAPIConfig(BaseSettings):
    """Steam endpoints and HTTP client settings."""

    model_config = SettingsConfigDict(env_prefix="STEAM_")

    store_url: str = Field(
        default="https://store.steampowered.com/api",
        description="Base URL for Steam Store API (appdetails)",
    )
    app_list_url: str = Field(
        default="https://api.steampowered.com/ISteamApps/GetAppList/v2/",
        description="Primary catalog list endpoint",
    )
    app_list_fallback_url: str = Field(
        default="https://raw.githubusercontent.com/dgibbs64/SteamCMD-AppID-List/master/steamcmd_appid.json",
        description="Static mirror of the catalog list, same shape as the primary",
    )
    player_count_url: str = Field(
        default="https://api.steampowered.com/ISteamUserStats/GetNumberOfCurrentPlayers/v1/",
        description="Current player count endpoint",
    )
    country_code: str = Field(
        default="cn",
        min_length=2,
        max_length=2,
        description="Region used for pricing (cc parameter)",
    )
    language: str = Field(
        default="schinese",
        description="Locale used for descriptions (l parameter)",
    )
    timeout_seconds: float = Field(
        default=10.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds",
    )
    user_agent: str = Field(
        default="SteamCatalogSync/1.0",
        description="Identifying User-Agent header",
    )


class RetryConfig(BaseSettings):
    """Retry behavior for rate-limited (HTTP 429) responses."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Maximum number of attempts when upstream answers 429",
    )
    rate_limit_cooldown_seconds: float = Field(
        default=60.0,
        ge=0.0,
        le=600.0,
        description="Fixed wait before retrying a rate-limited request",
    )


class SyncConfig(BaseSettings):
    """Catalog sync run settings."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    batch_size: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Detail requests issued concurrently per batch",
    )
    delay_seconds: float = Field(
        default=1.5,
        ge=0.0,
        le=60.0,
        description="Fixed delay between successive batches",
    )
    max_runtime_minutes: float = Field(
        default=20.0,
        gt=0.0,
        le=24 * 60,
        description="Wall-clock budget of one run",
    )
    stale_after_hours: float = Field(
        default=24.0,
        ge=0.0,
        description="Records updated more recently than this are not refreshed",
    )
    refresh_existing: bool = Field(
        default=True,
        description="Refresh stale records when time remains after new ids",
    )
    include_player_counts: bool = Field(
        default=False,
        description="Fill dau from the current player count endpoint",
    )
    skip_non_game_names: bool = Field(
        default=True,
        description="Drop list entries whose names mark them as DLC, soundtracks, etc.",
    )

    @property
    def max_runtime_seconds(self) -> float:
        return self.max_runtime_minutes * 60


class StorageConfig(BaseSettings):
    """Local store locations."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the catalog and the progress file",
    )
    catalog_file: str = Field(
        default="steam_games.json",
        description="Catalog file name inside data_dir",
    )
    progress_file: str = Field(
        default="sync_progress.json",
        description="Progress cursor file name inside data_dir",
    )

    @field_validator("catalog_file", "progress_file")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        """File names must not escape data_dir."""
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Invalid file name: {v}")
        return v

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / self.catalog_file

    @property
    def progress_path(self) -> Path:
        return self.data_dir / self.progress_file


class QueryConfig(BaseSettings):
    """Read path settings."""

    model_config = SettingsConfigDict(env_prefix="QUERY_")

    default_page_size: int = Field(default=24, ge=1, le=100)
    max_page_size: int = Field(default=100, ge=1, le=500)
    cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0.0,
        description="Lifetime of the cached catalog snapshot",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    format: Literal["json", "console"] = Field(
        default="json",
        description="Log output format",
    )
    include_timestamp: bool = Field(
        default=True,
        description="Include timestamp in log entries",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides
    a single entry point for configuration access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    # Sub-configurations
    steam: SteamAPIConfig = Field(default_factory=SteamAPIConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once
    and reused across the application.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
