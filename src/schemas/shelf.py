"""Shelf (aggregated collection) schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class ShelfAlcohol(BaseModel):
    """Alcohol summary shown on a shelf card."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str
    subtype: str | None
    brand: str | None


class ShelfEntryResponse(BaseModel):
    """One review inside a shelf group."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    alcohol_id: int
    photo_url: str | None
    drinking_date: date | None
    rating: int
    memo: str | None
    created_at: datetime
    display_name: str | None = None
    avatar_url: str | None = None


class ShelfGroupResponse(BaseModel):
    """All visible reviews of one alcohol."""

    model_config = ConfigDict(from_attributes=True)

    alcohol_id: int
    alcohol: ShelfAlcohol
    entries: list[ShelfEntryResponse]
    max_rating: int
    has_my_review: bool
    photo_url: str | None


class ShelfResponse(BaseModel):
    """The caller's shelf, merged with friends' entries."""

    model_config = ConfigDict(from_attributes=True)

    groups: list[ShelfGroupResponse]
    alcohol_count: int
    entry_count: int
    is_shared: bool
    error: bool = False
