"""SQLAlchemy models."""

from src.models.alcohol import Alcohol
from src.models.collection_entry import CollectionEntry
from src.models.shelf_share import ShelfShare
from src.models.user import Profile, User

__all__ = [
    "User",
    "Profile",
    "Alcohol",
    "CollectionEntry",
    "ShelfShare",
]
