"""
Query service over the synchronized catalog.

Filters records by platform, tags, keyword and demand flags, scores them
for relevance, sorts and paginates. Read-only: the catalog file is only
ever written by the sync orchestrator.
"""

import math
from collections.abc import Callable, Iterable
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, Field, field_validator

from steam_catalog.catalog.schemas import GameRecord
from steam_catalog.catalog.store import CatalogStore
from steam_catalog.config import QueryConfig, get_settings
from steam_catalog.logger import get_logger
from steam_catalog.query.cache import SnapshotCache


class SortKey(str, Enum):
    """Requested result order."""

    RATING = "rating"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    DAU = "dau"


class DemandFlag(str, Enum):
    """Shortcut filters offered by the front end."""

    SALE = "Sale"
    FREE = "Free"
    POSITIVE = "Positive"
    TRENDING = "Trending"


POSITIVE_RATING = 8.5
TRENDING_DAU = 5000

DEMAND_PREDICATES: dict[DemandFlag, Callable[[GameRecord], bool]] = {
    DemandFlag.SALE: lambda game: game.discount > 0,
    DemandFlag.FREE: lambda game: game.base_price == 0,
    DemandFlag.POSITIVE: lambda game: game.rating >= POSITIVE_RATING,
    DemandFlag.TRENDING: lambda game: game.dau >= TRENDING_DAU or game.rating >= POSITIVE_RATING,
}

# Keyword groups behind the "expectations" chips of the search form
EXPECTATION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Story": ("story rich", "story", "剧情", "narrative"),
    "Open World": ("open world", "开放世界"),
    "Multiplayer": ("multi-player", "multiplayer", "co-op", "coop", "online pvp", "pvp", "多人", "联机"),
    "Graphics": ("beautiful", "visual", "画面", "高清"),
    "Hardcore": ("hardcore", "difficult", "souls", "高难度", "硬核"),
    "Relaxing": ("casual", "relax", "relaxing", "轻松", "解压"),
    "Indie": ("indie", "独立"),
}

KEYWORD_SCORE = 8
TAG_SCORE = 6
EXPECTATION_SCORE = 4
DISCOUNT_SCORE = 2


def _split_list(v: Any) -> list[str]:
    """Accept lists or comma/space separated strings."""
    if v is None:
        return []
    if isinstance(v, str):
        v = v.replace(",", " ").split()
    return [str(item).strip() for item in v if str(item).strip()]


class QueryFilters(BaseModel):
    """Query predicates; every field is optional."""

    platform: str | None = None
    tags: list[str] = Field(default_factory=list)
    keyword: str | None = None
    expectations: list[str] = Field(default_factory=list)
    demand: list[str] = Field(default_factory=list)

    @field_validator("tags", "expectations", "demand", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> list[str]:
        return _split_list(v)

    @field_validator("platform", "keyword", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None


class RankedGame(GameRecord):
    """A record with its relevance score."""

    match_score: int = 0


class QueryResult(BaseModel):
    """One page of results."""

    items: list[RankedGame] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    size: int = 24

    def to_document(self) -> dict[str, Any]:
        return {
            "items": [item.model_dump(mode="json", by_alias=True) for item in self.items],
            "total": self.total,
            "page": self.page,
            "size": self.size,
        }


def game_text(game: GameRecord) -> str:
    """Lower-cased title and tags, the text every match runs against."""
    return f"{game.title} {' '.join(game.tags)}".lower()


def match_score(
    game: GameRecord,
    *,
    keyword: str | None,
    tags: Iterable[str],
    expectations: Iterable[str],
) -> int:
    """
    Relevance of a game for the request.

    +8 keyword in title/tags, +6 per requested tag found, +4 per
    expectation group with a keyword found, +2 when discounted.
    """
    text = game_text(game)
    score = 0
    if keyword and keyword.lower() in text:
        score += KEYWORD_SCORE
    score += TAG_SCORE * sum(1 for tag in tags if tag.lower() in text)
    for expectation in expectations:
        keywords = EXPECTATION_KEYWORDS.get(expectation, (expectation.lower(),))
        if any(k in text for k in keywords):
            score += EXPECTATION_SCORE
    if game.discount > 0:
        score += DISCOUNT_SCORE
    return score


class QueryService:
    """
    Serves filtered, scored and sorted pages of the catalog.

    Owns the snapshot cache; a new service starts with an empty one.

    Example:
        >>> service = QueryService()
        >>> page = service.query(QueryFilters(tags=["RPG"]), sort=SortKey.RATING)
    """

    SORT_KEYS: ClassVar[dict[SortKey, tuple[Callable[[RankedGame], Any], bool]]] = {
        SortKey.RATING: (lambda g: g.rating, True),
        SortKey.DAU: (lambda g: g.dau, True),
        SortKey.PRICE_ASC: (
            lambda g: g.effective_price if g.effective_price is not None else math.inf,
            False,
        ),
        SortKey.PRICE_DESC: (
            lambda g: g.effective_price if g.effective_price is not None else -math.inf,
            True,
        ),
    }

    def __init__(
        self,
        *,
        store_path: Path | None = None,
        config: QueryConfig | None = None,
        loader: Callable[[], list[GameRecord]] | None = None,
    ) -> None:
        """
        Args:
            store_path: Catalog file (defaults to the configured storage path)
            config: Query settings (defaults to settings)
            loader: Replaces reading the catalog file, mainly for tests
        """
        settings = get_settings()
        self._config = config or settings.query
        self._store_path = store_path or settings.storage.catalog_path
        self._cache: SnapshotCache[list[GameRecord]] = SnapshotCache(
            loader=loader or self._load_records,
            ttl_seconds=self._config.cache_ttl_seconds,
        )
        self._logger = get_logger(__name__, component="query")

    def _load_records(self) -> list[GameRecord]:
        store = CatalogStore(self._store_path)
        store.load(quarantine_corrupt=False)
        return list(store.records())

    def invalidate(self) -> None:
        """Drop the cached snapshot (e.g. after a sync run)."""
        self._cache.invalidate()

    def _page_bounds(self, page: Any, size: Any) -> tuple[int, int]:
        page_number = _to_int(page, 1)
        page_size = _to_int(size, self._config.default_page_size)
        return max(1, page_number), min(self._config.max_page_size, max(1, page_size))

    def _demand_flags(self, demand: Iterable[str]) -> list[DemandFlag]:
        flags: list[DemandFlag] = []
        for value in demand:
            try:
                flags.append(DemandFlag(value))
            except ValueError:
                self._logger.debug("Ignoring unknown demand flag", demand=value)
        return flags

    def _matches(self, game: GameRecord, filters: QueryFilters, flags: list[DemandFlag]) -> bool:
        if filters.platform and filters.platform not in game.platforms:
            return False
        if filters.tags:
            wanted = {tag.lower() for tag in filters.tags}
            if not any(tag.lower() in wanted for tag in game.tags):
                return False
        if filters.keyword and filters.keyword.lower() not in game_text(game):
            return False
        return all(DEMAND_PREDICATES[flag](game) for flag in flags)

    def query(
        self,
        filters: QueryFilters | None = None,
        *,
        sort: SortKey | str = SortKey.RATING,
        page: int = 1,
        size: int | None = None,
    ) -> QueryResult:
        """
        Run a query.

        Results are ordered by relevance, then re-sorted (stably) by the
        requested key, so relevance breaks ties of the sort key. Any internal
        failure yields an empty, well-formed page.
        """
        page, size = self._page_bounds(page, size)
        filters = filters or QueryFilters()

        try:
            sort_key = SortKey(sort)
            flags = self._demand_flags(filters.demand)
            games = self._cache.get()

            ranked = [
                RankedGame(
                    **game.model_dump(),
                    match_score=match_score(
                        game,
                        keyword=filters.keyword,
                        tags=filters.tags,
                        expectations=filters.expectations,
                    ),
                )
                for game in games
                if self._matches(game, filters, flags)
            ]

            ranked.sort(key=lambda g: g.match_score, reverse=True)
            key, reverse = self.SORT_KEYS[sort_key]
            ranked.sort(key=key, reverse=reverse)

            start = (page - 1) * size
            return QueryResult(
                items=ranked[start : start + size],
                total=len(ranked),
                page=page,
                size=size,
            )

        except Exception as e:
            self._logger.exception("Query failed", error=str(e), sort=str(sort))
            return QueryResult(items=[], total=0, page=page, size=size)


def _to_int(value: Any, default: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return int(number) if math.isfinite(number) else default
