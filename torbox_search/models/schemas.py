"""Request schemas shared by the services and the web layer."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    search: str = Field(min_length=1)
    category: Optional[str] = None
    searchType: Literal["exact", "fuzzy"] = "exact"
    searchField: str = "title"
    minSeeders: Optional[int] = Field(default=None, ge=0)
    sortBy: Literal["date", "seeders", "size"] = "date"

    @field_validator("searchType", mode="before")
    @classmethod
    def _legacy_exact_alias(cls, value):
        # Older clients send "100%" for an exact match.
        if value == "100%":
            return "exact"
        return value


class AddTorrentRequest(BaseModel):
    magnetUrl: str = Field(min_length=1)


class BatchAddTorrentsRequest(BaseModel):
    magnetUrls: List[str] = Field(min_length=1)
