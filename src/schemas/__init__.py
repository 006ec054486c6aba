"""Pydantic schemas for API requests and responses."""

from src.schemas.alcohol import AlcoholInfo, AlcoholResponse, AnalyzeResult, IdentifyRequest
from src.schemas.auth import (
    AuthResponse,
    ProfileResponse,
    ProfileUpdate,
    UserLogin,
    UserRegister,
    UserResponse,
)
from src.schemas.collection import (
    CollectionEntryCreate,
    CollectionEntryResponse,
    CollectionEntryUpdate,
)
from src.schemas.shelf import ShelfGroupResponse, ShelfResponse
from src.schemas.share import FriendResponse, InviteResponse, JoinRequest, SharesResponse

__all__ = [
    "UserRegister",
    "UserLogin",
    "AuthResponse",
    "UserResponse",
    "ProfileResponse",
    "ProfileUpdate",
    "AlcoholInfo",
    "AlcoholResponse",
    "IdentifyRequest",
    "AnalyzeResult",
    "CollectionEntryCreate",
    "CollectionEntryUpdate",
    "CollectionEntryResponse",
    "ShelfGroupResponse",
    "ShelfResponse",
    "InviteResponse",
    "FriendResponse",
    "SharesResponse",
    "JoinRequest",
]
