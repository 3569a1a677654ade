"""
Record normalizer.

Maps one raw /appdetails entry to a ``GameRecord``. Pure: no I/O, no
clock, so normalizing the same entry twice gives equal records.
"""

from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from pydantic import ValidationError as PydanticValidationError

from steam_catalog.catalog.schemas import GameRecord, Platform
from steam_catalog.ingestion.contracts import SteamStoreAPIResponse, SteamStoreGame
from steam_catalog.logger import get_logger

logger = get_logger(__name__, component="normalizer")


# Store categories kept as tags; the rest (Steam Cloud, Trading Cards...) are noise
RELEVANT_CATEGORIES: frozenset[str] = frozenset(
    {"Single-player", "Multi-player", "Co-op", "PvP", "Online PvP"}
)

TAG_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Horror": ("horror", "zombie", "scary", "ghost", "undead", "survival horror", "vampire", "gore"),
    "Racing": ("racing", "drift", "driver", "kart", "speed", "moto", "car"),
    "Sports": ("sport", "soccer", "football", "basketball", "hockey", "tennis", "golf", "manager", "skate"),
    "Simulation": ("simulation", "simulator", "sim", "flight", "train", "bus", "farm"),
    "Strategy": ("strategy", "rts", "tbs", "tower defense", "card", "turn-based", "grand strategy"),
    "RPG": ("rpg", "role-playing", "role playing", "jrpg", "dungeon"),
    "Action": ("action", "shooter", "fps", "fight", "combat", "hack and slash", "battle"),
    "Adventure": ("adventure", "quest", "exploration", "puzzle", "visual novel"),
    "Casual": ("casual", "puzzle", "hidden object", "match 3", "card", "board"),
}


def infer_tags(title: str, tags: Iterable[str]) -> list[str]:
    """
    Add category tags whose keywords occur in the title or existing tags.

    Matching is a plain substring test on the lower-cased text, so
    "Scary Cars" gains both Horror and Racing. An added category name is
    matched again ("Sports" contains "rts"), so the loop runs until no new
    category appears and a second call adds nothing.

    Returns:
        Sorted, deduplicated tag list
    """
    title = (title or "").lower()
    result = {tag for tag in tags if tag}

    while True:
        text = " ".join([title, *result]).lower()
        added = {
            category
            for category, keywords in TAG_KEYWORDS.items()
            if category not in result and any(keyword in text for keyword in keywords)
        }
        if not added:
            return sorted(result)
        result |= added


class RecordNormalizer:
    """Converts Store API entries into catalog records."""

    PLATFORM_FLAGS: ClassVar[tuple[tuple[str, Platform], ...]] = (
        ("windows", Platform.PC),
        ("mac", Platform.MAC),
        ("linux", Platform.LINUX),
    )

    def normalize(self, raw_entry: Mapping[str, Any] | None) -> GameRecord | None:
        """
        Normalize one /appdetails entry.

        Args:
            raw_entry: ``{"success": bool, "data": {...}}`` for a single app

        Returns:
            The canonical record, or None when the entry is missing,
            unsuccessful, not a game, or fails validation
        """
        if not raw_entry:
            return None

        try:
            entry = SteamStoreAPIResponse.model_validate(raw_entry)
        except PydanticValidationError as e:
            logger.warning("Dropping entry that fails the store contract", error_count=e.error_count())
            return None

        if not entry.success or entry.data is None:
            return None

        game = entry.data
        if not game.is_game:
            logger.debug("Skipping non-game app", app_id=game.steam_appid, app_type=game.type)
            return None

        base_price, discount = self._price(game)
        title = game.name or ""

        try:
            return GameRecord(
                id=game.steam_appid,
                title=title,
                platforms=self._platforms(game),
                base_price=base_price,
                discount=discount,
                rating=game.metacritic.score / 10 if game.metacritic else 0,
                tags=infer_tags(title, self._tags(game)),
                cover=game.header_image or "",
                release_date=game.release_date.date,
            )
        except PydanticValidationError as e:
            logger.warning(
                "Dropping record that fails validation",
                app_id=game.steam_appid,
                error_count=e.error_count(),
            )
            return None

    def _platforms(self, game: SteamStoreGame) -> list[Platform]:
        flags = game.platforms
        return [platform for flag, platform in self.PLATFORM_FLAGS if getattr(flags, flag)]

    def _price(self, game: SteamStoreGame) -> tuple[float | None, float]:
        """(base_price, discount) with prices converted from minor units."""
        if game.is_free:
            return 0.0, 0.0
        if game.price_overview is None:
            return None, 0.0
        price = game.price_overview
        return float(price.initial_amount), price.discount_percent / 100

    def _tags(self, game: SteamStoreGame) -> list[str]:
        tags = list(game.genre_names)
        tags.extend(name for name in game.category_names if name in RELEVANT_CATEGORIES)
        return list(dict.fromkeys(tags))


_default_normalizer = RecordNormalizer()


def normalize(raw_entry: Mapping[str, Any] | None) -> GameRecord | None:
    """Module-level shortcut for ``RecordNormalizer().normalize``."""
    return _default_normalizer.normalize(raw_entry)
