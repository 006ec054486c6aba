"""Collection entry schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.alcohol import AlcoholInfo, AlcoholResponse


class CollectionEntryCreate(BaseModel):
    """Save a reviewed bottle to the current user's collection."""

    alcohol_info: AlcoholInfo
    # Set when reviewing a bottle a friend already catalogued
    existing_alcohol_id: int | None = None
    photo_url: str | None = Field(None, max_length=1024)
    drinking_date: date | None = None
    rating: int = Field(..., ge=1, le=5)
    memo: str | None = Field(None, max_length=2000)


class CollectionEntryUpdate(BaseModel):
    """Replace the editable fields of an entry."""

    photo_url: str | None = Field(None, max_length=1024)
    drinking_date: date | None = None
    rating: int = Field(..., ge=1, le=5)
    memo: str | None = Field(None, max_length=2000)


class CollectionEntryResponse(BaseModel):
    """Collection entry with its alcohol."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    alcohol_id: int
    photo_url: str | None
    drinking_date: date | None
    rating: int
    memo: str | None
    created_at: datetime
    updated_at: datetime
    alcohol: AlcoholResponse


class PhotoUploadResponse(BaseModel):
    """Public URL of an uploaded photo."""

    photo_url: str
