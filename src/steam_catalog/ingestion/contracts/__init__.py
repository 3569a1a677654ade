"""
Data contracts for Steam API responses.

Pydantic models describing the upstream payloads the sync reads:
the catalog list, /appdetails entries and current player counts.
"""

from steam_catalog.ingestion.contracts.app_list import (
    AppList,
    AppListEntry,
    AppListResponse,
)
from steam_catalog.ingestion.contracts.steam_player_stats import (
    PlayerCountAPIResponse,
    PlayerCountResponse,
)
from steam_catalog.ingestion.contracts.steam_store import (
    AppId,
    Category,
    Genre,
    Metacritic,
    Platform,
    PriceOverview,
    ReleaseDate,
    SteamStoreAPIResponse,
    SteamStoreGame,
)

__all__ = [
    "AppId",
    "AppList",
    "AppListEntry",
    "AppListResponse",
    "Category",
    "Genre",
    "Metacritic",
    "Platform",
    "PlayerCountAPIResponse",
    "PlayerCountResponse",
    "PriceOverview",
    "ReleaseDate",
    "SteamStoreAPIResponse",
    "SteamStoreGame",
]
