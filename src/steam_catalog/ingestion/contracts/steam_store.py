"""
Data contracts for Steam Store API responses.

These Pydantic models describe the parts of the /appdetails payload the
normalizer reads. Unknown keys are ignored; most fields are optional
because the Store API omits them freely (free games carry no
``price_overview``, unreleased games no ``metacritic`` and so on).
"""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator


class PriceOverview(BaseModel):
    """Price information for a game, in currency minor units."""

    initial: int = Field(..., description="Initial price in cents")
    discount_percent: float = Field(default=0, description="Discount percentage")

    @property
    def initial_amount(self) -> Decimal:
        """Convert initial price from minor to major units."""
        return Decimal(self.initial) / 100


class ReleaseDate(BaseModel):
    """Release date information."""

    date: str = Field(default="", description="Release date string")


class Platform(BaseModel):
    """Platform availability flags."""

    windows: bool = Field(default=False)
    mac: bool = Field(default=False)
    linux: bool = Field(default=False)


class Category(BaseModel):
    """Store category (Single-player, Co-op, ...)."""

    id: int | None = None
    description: str = ""


class Genre(BaseModel):
    """Game genre."""

    id: str | None = None
    description: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str | None:
        """Genre ids come back as strings or ints depending on the region."""
        return None if v is None else str(v)


class Metacritic(BaseModel):
    """Metacritic score information."""

    score: int = Field(..., ge=0, le=100)


class SteamStoreGame(BaseModel):
    """
    Game data from Steam Store API.

    Represents the ``data`` object of one /appdetails entry.
    """

    # Identifiers
    steam_appid: int = Field(..., gt=0, description="Steam application ID")
    name: str | None = Field(default=None, description="Game name")
    type: str = Field(default="", description="Type: game, dlc, demo, etc.")

    # Classification
    is_free: bool = Field(default=False, description="Whether the game is free")
    categories: list[Category] = Field(default_factory=list)
    genres: list[Genre] = Field(default_factory=list)

    # Pricing (optional - free games don't have this)
    price_overview: PriceOverview | None = Field(
        default=None, description="Price info (None for free games)"
    )

    # Platforms
    platforms: Platform = Field(default_factory=Platform)

    # Release
    release_date: ReleaseDate = Field(default_factory=ReleaseDate)

    # Media
    header_image: str | None = Field(default=None, description="Header image URL")

    # Reviews
    metacritic: Metacritic | None = Field(default=None)

    @field_validator("categories", "genres", mode="before")
    @classmethod
    def coerce_null_list(cls, v: Any) -> Any:
        """The API sends null instead of an empty list for some apps."""
        return [] if v is None else v

    @field_validator("platforms", "release_date", mode="before")
    @classmethod
    def coerce_null_object(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def is_game(self) -> bool:
        """Only full games are mirrored (no DLC, software, hardware, demos)."""
        return self.type.lower() == "game"

    @property
    def genre_names(self) -> list[str]:
        """Extract genre names as simple list."""
        return [g.description for g in self.genres if g.description]

    @property
    def category_names(self) -> list[str]:
        """Extract category names as simple list."""
        return [c.description for c in self.categories if c.description]


class SteamStoreAPIResponse(BaseModel):
    """
    One entry of the Steam Store API response.

    The API returns {app_id: {success: bool, data: {...}}}
    """

    success: bool = False
    data: SteamStoreGame | None = None


# Type alias for batch responses
AppId = Annotated[int, Field(gt=0, description="Steam App ID")]
