"""
Steam App List Extractor.

Fetches the complete list of Steam apps from ISteamApps/GetAppList/v2,
falling back to a static SteamCMD mirror when the official endpoint fails.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from pydantic import ValidationError as PydanticValidationError

from steam_catalog.ingestion.contracts import AppListResponse
from steam_catalog.ingestion.extractors.base import (
    BaseExtractor,
    CatalogListError,
    ExtractionError,
    ValidationError,
)


@dataclass(frozen=True)
class SteamApp:
    """Basic Steam app info."""

    app_id: int
    name: str


class AppListExtractor(BaseExtractor):
    """
    Extracts the Steam app list.

    Example:
        >>> async with AppListExtractor() as extractor:
        ...     apps = await extractor.get_all_apps()
    """

    # Name fragments of list entries that are never full games
    SKIP_KEYWORDS: ClassVar[list[str]] = [
        "soundtrack",
        "ost",
        "dlc",
        "demo",
        "beta test",
        "dedicated server",
        "sdk",
        "skin pack",
        "art book",
        "artbook",
        "wallpaper",
        "bonus content",
        "pre-order",
        "preorder",
        "season pass",
        "expansion pass",
        "supporter pack",
    ]

    _skip_pattern: ClassVar[re.Pattern[str]] = re.compile(
        r"\b(?:" + "|".join(re.escape(k) for k in SKIP_KEYWORDS) + r")\b",
        re.IGNORECASE,
    )

    @property
    def source_name(self) -> str:
        """Return source identifier."""
        return "steam_app_list"

    async def _fetch_list(self, url: str) -> list[SteamApp]:
        """Fetch and validate one list endpoint."""
        raw_data = await self.fetch_json(url)

        try:
            payload = AppListResponse.model_validate(raw_data)
        except PydanticValidationError as e:
            raise ValidationError(
                f"App list validation failed: {e}",
                source=self.source_name,
                endpoint=url,
            ) from e

        apps: list[SteamApp] = []
        seen: set[int] = set()
        for item in payload.applist.apps:
            # id 0 and negative ids show up in the mirror
            if item.appid <= 0 or item.appid in seen:
                continue
            seen.add(item.appid)
            apps.append(SteamApp(app_id=item.appid, name=item.name))
        return apps

    async def get_all_apps(self) -> list[SteamApp]:
        """
        Get the complete app list, primary endpoint first.

        Returns:
            Deduplicated apps with positive ids, in upstream order

        Raises:
            CatalogListError: Both the primary and the fallback source failed
        """
        sources = [
            ("primary", self._steam_config.app_list_url),
            ("fallback", self._steam_config.app_list_fallback_url),
        ]
        errors: list[str] = []

        for label, url in sources:
            self._logger.info("Fetching app list", source_label=label, url=url)
            try:
                apps = await self._fetch_list(url)
            except ExtractionError as e:
                self._logger.warning(
                    "App list fetch failed",
                    source_label=label,
                    error=str(e),
                    error_type=e.__class__.__name__,
                )
                errors.append(f"{label}: {e}")
                continue

            self._logger.info("App list fetched", source_label=label, total_apps=len(apps))
            return apps

        raise CatalogListError(
            "Failed to fetch app list: " + "; ".join(errors),
            source=self.source_name,
        )

    def filter_likely_games(self, apps: list[SteamApp]) -> list[SteamApp]:
        """
        Drop entries whose names mark them as non-games.

        Matching is on whole words so "Ghost" does not trip on "ost".
        """
        filtered = [app for app in apps if not self._skip_pattern.search(app.name)]

        self._logger.info(
            "Filtered to likely games",
            input_count=len(apps),
            output_count=len(filtered),
            removed=len(apps) - len(filtered),
        )
        return filtered
