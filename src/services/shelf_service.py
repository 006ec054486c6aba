"""Shelf aggregation: the user's entries merged with their friends', grouped per alcohol."""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from src.models.alcohol import Alcohol
from src.models.collection_entry import CollectionEntry
from src.models.enums import SortField, SortOrder
from src.models.user import Profile
from src.services.visibility import get_friend_user_ids

logger = logging.getLogger(__name__)


@dataclass
class ShelfGroup:
    """All visible entries for one alcohol."""

    alcohol_id: int
    alcohol: Alcohol
    entries: list[Any] = field(default_factory=list)
    max_rating: int = 0
    has_my_review: bool = False
    photo_url: str | None = None


@dataclass
class Shelf:
    """Grouped shelf plus summary counts."""

    groups: list[ShelfGroup] = field(default_factory=list)
    entry_count: int = 0
    is_shared: bool = False
    error: bool = False

    @property
    def alcohol_count(self) -> int:
        """Number of distinct alcohols on the shelf."""
        return len(self.groups)


def group_entries(entries: list[CollectionEntry], user_id: int) -> list[ShelfGroup]:
    """Partition entries by alcohol, preserving the order they arrive in.

    The caller's own photo wins over a friend's; otherwise the first photo
    encountered is used.
    """
    groups: dict[int, ShelfGroup] = {}

    for entry in entries:
        group = groups.get(entry.alcohol_id)
        if group is None:
            group = ShelfGroup(alcohol_id=entry.alcohol_id, alcohol=entry.alcohol)
            groups[entry.alcohol_id] = group

        group.entries.append(entry)

        if entry.rating and entry.rating > group.max_rating:
            group.max_rating = entry.rating

        is_mine = entry.user_id == user_id
        if is_mine:
            group.has_my_review = True

        if entry.photo_url and (group.photo_url is None or is_mine):
            group.photo_url = entry.photo_url

    return list(groups.values())


def sort_groups_by_rating(groups: list[ShelfGroup], order: SortOrder) -> list[ShelfGroup]:
    """Order groups by their best rating. Ties keep their query order."""
    return sorted(groups, key=lambda group: group.max_rating, reverse=not order.ascending)


class ShelfService:
    """Service that builds the shelf view."""

    def __init__(self, db: Session):
        self.db = db

    def _fetch_entries(
        self,
        visible_ids: list[int],
        sort_field: SortField,
        sort_order: SortOrder,
        type_filter: str | None,
        min_rating: int | None,
    ) -> list[CollectionEntry]:
        query = (
            self.db.query(CollectionEntry)
            .join(Alcohol, CollectionEntry.alcohol_id == Alcohol.id)
            .options(contains_eager(CollectionEntry.alcohol))
            .filter(CollectionEntry.user_id.in_(visible_ids))
        )

        if type_filter:
            query = query.filter(Alcohol.type == type_filter)
        if min_rating is not None:
            query = query.filter(CollectionEntry.rating >= min_rating)

        column = getattr(CollectionEntry, sort_field.value)
        ordered = column.asc() if sort_order.ascending else column.desc()
        tiebreak = CollectionEntry.id.asc() if sort_order.ascending else CollectionEntry.id.desc()
        return query.order_by(ordered.nullslast(), tiebreak).all()

    def _profiles_for(self, user_ids: set[int]) -> dict[int, Profile]:
        if not user_ids:
            return {}
        return {
            profile.id: profile
            for profile in self.db.query(Profile).filter(Profile.id.in_(user_ids)).all()
        }

    def list_shelf(
        self,
        user_id: int,
        sort_field: SortField | str = SortField.CREATED_AT,
        sort_order: SortOrder | str = SortOrder.DESC,
        type_filter: str | None = None,
        min_rating: int | None = None,
    ) -> Shelf:
        """Build the shelf visible to a user.

        Args:
            user_id: The viewing user
            sort_field: created_at, rating or drinking_date (unknown values fall back to created_at)
            sort_order: asc or desc (unknown values fall back to desc)
            type_filter: Exact alcohol type to keep
            min_rating: Keep entries rated at least this

        Returns:
            Shelf with groups in display order. On a database error the shelf
            is empty and `error` is set.
        """
        try:
            sort_field = SortField(sort_field)
        except ValueError:
            sort_field = SortField.CREATED_AT
        try:
            sort_order = SortOrder(sort_order)
        except ValueError:
            sort_order = SortOrder.DESC

        try:
            visible_ids = get_friend_user_ids(self.db, user_id)
            entries = self._fetch_entries(
                visible_ids, sort_field, sort_order, type_filter, min_rating
            )
            profiles = self._profiles_for({entry.user_id for entry in entries})
        except SQLAlchemyError as e:
            logger.error(f"Failed to load shelf for user {user_id}: {e}")
            return Shelf(error=True)

        groups = group_entries(entries, user_id)
        if sort_field == SortField.RATING:
            groups = sort_groups_by_rating(groups, sort_order)

        for group in groups:
            group.entries = [self._entry_view(entry, profiles) for entry in group.entries]

        return Shelf(
            groups=groups,
            entry_count=len(entries),
            is_shared=any(entry.user_id != user_id for entry in entries),
        )

    @staticmethod
    def _entry_view(entry: CollectionEntry, profiles: dict[int, Profile]) -> dict[str, Any]:
        profile = profiles.get(entry.user_id)
        return {
            "id": entry.id,
            "user_id": entry.user_id,
            "alcohol_id": entry.alcohol_id,
            "photo_url": entry.photo_url,
            "drinking_date": entry.drinking_date,
            "rating": entry.rating,
            "memo": entry.memo,
            "created_at": entry.created_at,
            "display_name": profile.display_name if profile else None,
            "avatar_url": profile.avatar_url if profile else None,
        }
