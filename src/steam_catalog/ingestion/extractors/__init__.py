"""
Data extractors for Steam APIs.

All extractors share one base with error classification,
rate-limit retries, and structured logging.
"""

from steam_catalog.ingestion.extractors.app_list import AppListExtractor, SteamApp
from steam_catalog.ingestion.extractors.base import (
    BaseExtractor,
    CatalogListError,
    ExtractionError,
    ExtractionResult,
    HttpStatusError,
    NetworkError,
    ParseError,
    RateLimitError,
    ValidationError,
)
from steam_catalog.ingestion.extractors.steam_player_stats import SteamPlayerStatsExtractor
from steam_catalog.ingestion.extractors.steam_store import SteamStoreExtractor

__all__ = [
    # Base classes and errors
    "BaseExtractor",
    "CatalogListError",
    "ExtractionError",
    "ExtractionResult",
    "HttpStatusError",
    "NetworkError",
    "ParseError",
    "RateLimitError",
    "ValidationError",
    # Extractors
    "AppListExtractor",
    "SteamApp",
    "SteamPlayerStatsExtractor",
    "SteamStoreExtractor",
]
