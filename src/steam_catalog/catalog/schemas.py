"""
Canonical catalog schemas.

``GameRecord`` is the persisted per-game entity. Its validators enforce
the storage invariants (price sanity, discount range, non-empty platform
list, deduplicated tags) whether the record comes from the normalizer or
from a catalog file written by an older version.
"""

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Prices above this are treated as a unit mismatch
PRICE_CEILING = 1000.0

# Upstream sometimes reports prices scaled by this factor
PRICE_RESCALE_FACTOR = 1000


class Platform(str, Enum):
    """Platform tags a record can carry."""

    PC = "PC"
    MAC = "Mac"
    LINUX = "Linux"
    PLAYSTATION = "PS"
    XBOX = "Xbox"
    SWITCH = "NS"


DEFAULT_PLATFORM = Platform.PC


def _finite_number(value: Any) -> float | None:
    """Coerce to float, None for missing, non-numeric or non-finite input."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def sanitize_price(value: Any) -> float | None:
    """
    Apply the price sanity rule.

    Negative or non-numeric prices are unknown (None). Prices above
    ``PRICE_CEILING`` are rescaled by 1/1000 when evenly divisible and the
    result fits under the ceiling, and dropped to None otherwise.
    """
    price = _finite_number(value)
    if price is None or price < 0:
        return None
    if price > PRICE_CEILING:
        rescaled = price / PRICE_RESCALE_FACTOR
        if price % PRICE_RESCALE_FACTOR == 0 and rescaled <= PRICE_CEILING:
            price = rescaled
        else:
            return None
    return round(price, 2)


def sanitize_discount(value: Any) -> float:
    """Discount fraction in [0, 1]; anything else becomes 0."""
    discount = _finite_number(value)
    if discount is None or discount < 0 or discount > 1:
        return 0.0
    return round(discount, 2)


def is_valid_price(price: float | None) -> bool:
    return price is not None and 0 <= price <= PRICE_CEILING


class GameRecord(BaseModel):
    """
    A game as stored in the local catalog.

    Serialized with camelCase keys (``basePrice``, ``releaseDate``,
    ``updatedAt``) for the front end; Python code uses snake_case.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    id: int = Field(..., gt=0, description="Steam app id, primary key")
    title: str = Field(default="", description="Display title, never null")
    platforms: list[Platform] = Field(default_factory=lambda: [DEFAULT_PLATFORM])
    base_price: float | None = Field(default=None, description="Price before discount, None if unknown")
    discount: float = Field(default=0.0, description="Discount fraction in [0, 1]")
    rating: float = Field(default=0.0, description="Score on a 0-10 scale, 0 = no rating")
    dau: int = Field(default=0, description="Daily active users proxy, 0 = unknown")
    tags: list[str] = Field(default_factory=list)
    cover: str = Field(default="", description="Header image URL")
    release_date: str = Field(default="", description="Free-text release date")
    updated_at: int = Field(default=0, ge=0, description="Epoch ms of the last successful upsert")

    @field_validator("title", "cover", "release_date", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("platforms", mode="before")
    @classmethod
    def coerce_platforms(cls, v: Any) -> list[str]:
        """Keep known platforms in first-seen order, fall back to PC."""
        known = {p.value for p in Platform}
        values = v if isinstance(v, list | tuple | set) else [v]
        platforms: list[str] = []
        for item in values:
            name = item.value if isinstance(item, Platform) else item
            if name in known and name not in platforms:
                platforms.append(name)
        return platforms or [DEFAULT_PLATFORM.value]

    @field_validator("base_price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> float | None:
        return sanitize_price(v)

    @field_validator("discount", mode="before")
    @classmethod
    def coerce_discount(cls, v: Any) -> float:
        return sanitize_discount(v)

    @field_validator("rating", mode="before")
    @classmethod
    def coerce_rating(cls, v: Any) -> float:
        rating = _finite_number(v)
        if rating is None or rating < 0 or rating > 10:
            return 0.0
        return round(rating, 1)

    @field_validator("dau", mode="before")
    @classmethod
    def coerce_dau(cls, v: Any) -> int:
        dau = _finite_number(v)
        return int(dau) if dau is not None and dau > 0 else 0

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Any) -> list[str]:
        """Tags are a set; stored sorted so equal sets serialize identically."""
        if not v:
            return []
        return sorted({str(tag).strip() for tag in v if tag and str(tag).strip()})

    @property
    def effective_price(self) -> float | None:
        """Price after discount, None when the base price is unknown."""
        if self.base_price is None:
            return None
        return round(self.base_price * (1 - self.discount), 2)

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ProgressState(BaseModel):
    """
    Persisted sync cursor.

    ``cursor_index`` counts ids visited in the current walk over new ids;
    ``last_app_id`` and ``walk_start_app_id`` bound the id range already
    visited, so the cursor stays valid when the upstream list changes.
    """

    cursor_index: int = Field(default=0, ge=0)
    total_count: int = Field(default=0, ge=0)
    last_app_id: int | None = Field(default=None, gt=0)
    walk_start_app_id: int | None = Field(default=None, gt=0)
    updated_at: int = Field(default=0, ge=0, description="Epoch ms of the last save")

    @property
    def in_progress(self) -> bool:
        """True while an interrupted walk has not reached its end."""
        return self.last_app_id is not None and self.walk_start_app_id is not None
