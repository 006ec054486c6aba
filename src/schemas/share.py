"""Shelf sharing schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class InviteResponse(BaseModel):
    """An invite code to hand to a friend."""

    code: str


class ShelfShareResponse(BaseModel):
    """Share row as seen by its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    shared_with_id: int | None
    invite_code: str | None
    status: str
    created_at: datetime
    accepted_at: datetime | None


class FriendResponse(BaseModel):
    """The other party of an accepted share."""

    id: int
    share_id: int
    display_name: str | None
    avatar_url: str | None
    since: datetime


class SharesResponse(BaseModel):
    """Open invite plus friend list."""

    current_invite: ShelfShareResponse | None
    friends: list[FriendResponse]


class JoinRequest(BaseModel):
    """Join a friend's shelf with their invite code."""

    code: str = Field(..., min_length=1, max_length=16)
    delete_collection: bool = False


class JoinResponse(BaseModel):
    """Result of a successful join."""

    success: bool = True
