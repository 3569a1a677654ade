"""
Data contracts for the catalog list endpoints.

Both ISteamApps/GetAppList/v2 and the static SteamCMD mirror return
{"applist": {"apps": [{"appid": 10, "name": "Counter-Strike"}, ...]}}.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class AppListEntry(BaseModel):
    """A single app in the catalog list."""

    appid: int
    name: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        return "" if v is None else str(v)


class AppList(BaseModel):
    """The ``applist`` object."""

    apps: list[AppListEntry] = Field(default_factory=list)


class AppListResponse(BaseModel):
    """Complete catalog list response."""

    applist: AppList
