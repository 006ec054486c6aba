"""Collection service: saving, editing and purging a user's entries."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from src.models.alcohol import Alcohol
from src.models.collection_entry import CollectionEntry
from src.schemas.alcohol import AlcoholInfo
from src.schemas.collection import CollectionEntryCreate, CollectionEntryUpdate
from src.services.visibility import get_friend_user_ids
from src.tasks.cleanup import schedule_photo_deletion

logger = logging.getLogger(__name__)


class CollectionError(Exception):
    """Raised when a user-visible collection mutation fails."""


class AlcoholNotFoundError(CollectionError):
    """Raised when a referenced alcohol does not exist or is not visible."""


class CollectionService:
    """Service for collection entries and the alcohols they reference."""

    def __init__(self, db: Session):
        self.db = db

    # -- reads ---------------------------------------------------------------

    def _get_visible_alcohol(self, alcohol_id: int, user_id: int) -> Alcohol | None:
        """An alcohol is visible when the user or a friend has an entry for it."""
        visible_ids = get_friend_user_ids(self.db, user_id)
        return (
            self.db.query(Alcohol)
            .join(CollectionEntry, CollectionEntry.alcohol_id == Alcohol.id)
            .filter(Alcohol.id == alcohol_id, CollectionEntry.user_id.in_(visible_ids))
            .first()
        )

    def get_alcohol_info(self, alcohol_id: int, user_id: int) -> AlcoholInfo | None:
        """Get an existing alcohol so the user can add their own review of it."""
        alcohol = self._get_visible_alcohol(alcohol_id, user_id)
        if alcohol is None:
            logger.info(f"Alcohol {alcohol_id} not found for user {user_id}")
            return None
        return AlcoholInfo.model_validate(alcohol)

    def get_entry(self, entry_id: int, user_id: int) -> CollectionEntry | None:
        """Get an entry owned by the user or one of their friends."""
        visible_ids = get_friend_user_ids(self.db, user_id)
        return (
            self.db.query(CollectionEntry)
            .options(joinedload(CollectionEntry.alcohol))
            .filter(CollectionEntry.id == entry_id, CollectionEntry.user_id.in_(visible_ids))
            .first()
        )

    def _get_own_entry(self, entry_id: int, user_id: int) -> CollectionEntry | None:
        return (
            self.db.query(CollectionEntry)
            .filter(CollectionEntry.id == entry_id, CollectionEntry.user_id == user_id)
            .first()
        )

    # -- mutations -----------------------------------------------------------

    def save_collection(self, user_id: int, data: CollectionEntryCreate) -> CollectionEntry:
        """Save a reviewed bottle, creating its alcohol first unless one is supplied."""
        try:
            if data.existing_alcohol_id is not None:
                alcohol = self._get_visible_alcohol(data.existing_alcohol_id, user_id)
                if alcohol is None:
                    raise AlcoholNotFoundError("Alcohol not found")
                logger.info(f"Adding review to existing alcohol {alcohol.id}")
            else:
                info = data.alcohol_info
                alcohol = Alcohol(
                    **info.model_dump(),
                    raw_llm_response=info.model_dump(mode="json"),
                )
                self.db.add(alcohol)
                self.db.flush()

            entry = CollectionEntry(
                user_id=user_id,
                alcohol_id=alcohol.id,
                photo_url=data.photo_url or None,
                drinking_date=data.drinking_date,
                rating=data.rating,
                memo=data.memo or None,
            )
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save collection entry for user {user_id}: {e}")
            raise CollectionError("Failed to save collection entry") from e

        self.db.refresh(entry)
        return entry

    def update_entry(
        self, entry_id: int, user_id: int, data: CollectionEntryUpdate
    ) -> CollectionEntry | None:
        """Update the user's own entry. Returns None if it does not exist."""
        entry = self._get_own_entry(entry_id, user_id)
        if entry is None:
            return None

        old_photo_url = entry.photo_url
        entry.photo_url = data.photo_url or None
        entry.drinking_date = data.drinking_date
        entry.rating = data.rating
        entry.memo = data.memo or None

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update collection entry {entry_id}: {e}")
            raise CollectionError("Failed to update collection entry") from e

        if old_photo_url and old_photo_url != entry.photo_url:
            schedule_photo_deletion(old_photo_url)

        self.db.refresh(entry)
        return entry

    def delete_entry(self, entry_id: int, user_id: int) -> bool:
        """Delete the user's own entry. Returns False if it does not exist."""
        entry = self._get_own_entry(entry_id, user_id)
        if entry is None:
            return False

        photo_url = entry.photo_url
        try:
            self.db.delete(entry)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete collection entry {entry_id}: {e}")
            raise CollectionError("Failed to delete collection entry") from e

        schedule_photo_deletion(photo_url)
        return True

    def delete_user_collection(self, user_id: int) -> list[int]:
        """Delete every entry the user owns.

        Returns the alcohol IDs those entries referenced, for orphan pruning.
        """
        rows = (
            self.db.query(CollectionEntry.alcohol_id, CollectionEntry.photo_url)
            .filter(CollectionEntry.user_id == user_id)
            .all()
        )
        alcohol_ids = sorted({alcohol_id for alcohol_id, _ in rows})

        try:
            self.db.query(CollectionEntry).filter(CollectionEntry.user_id == user_id).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete collection of user {user_id}: {e}")
            raise CollectionError("Failed to delete collection") from e

        logger.info(f"Deleted {len(rows)} entries of user {user_id}")
        for _, photo_url in rows:
            schedule_photo_deletion(photo_url)
        return alcohol_ids

    def prune_orphan_alcohols(self, alcohol_ids: list[int]) -> list[int]:
        """Delete the given alcohols that no entry references any more.

        Best effort: orphaned catalog rows are harmless, so failures are
        logged and an empty list is returned.
        """
        if not alcohol_ids:
            return []

        try:
            still_used = {
                alcohol_id
                for (alcohol_id,) in self.db.query(CollectionEntry.alcohol_id)
                .filter(CollectionEntry.alcohol_id.in_(alcohol_ids))
                .distinct()
                .all()
            }
            orphaned = [alcohol_id for alcohol_id in alcohol_ids if alcohol_id not in still_used]
            if orphaned:
                self.db.query(Alcohol).filter(Alcohol.id.in_(orphaned)).delete(
                    synchronize_session=False
                )
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Failed to delete orphaned alcohols {alcohol_ids}: {e}")
            return []

        if orphaned:
            logger.info(f"Pruned orphaned alcohols {orphaned}")
        return orphaned
