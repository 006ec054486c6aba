"""Shelf sharing service: invite codes, joining and the friend list."""

import logging
import secrets
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.models.enums import ShareErrorReason, ShareStatus
from src.models.shelf_share import ShelfShare
from src.models.user import Profile
from src.services.collection_service import CollectionError, CollectionService
from src.services.visibility import get_friend_user_ids

logger = logging.getLogger(__name__)

# No 0/O/o, 1/I/i/l: codes get read aloud and typed on phones
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"
INVITE_CODE_LENGTH = 8
MAX_CODE_ATTEMPTS = 5

ERROR_MESSAGES = {
    ShareErrorReason.NOT_FOUND: "Invite code not found",
    ShareErrorReason.SELF_INVITE: "This is your own invite code",
    ShareErrorReason.ALREADY_USED: "This invite code has already been used",
    ShareErrorReason.ALREADY_PROCESSED: "This invite code has already been processed",
    ShareErrorReason.ALREADY_FRIENDS: "You are already friends",
    ShareErrorReason.GENERATION_FAILED: "Failed to generate an invite code, please try again",
    ShareErrorReason.PURGE_FAILED: "Failed to delete your collection",
    ShareErrorReason.JOIN_FAILED: "Failed to join the shelf, please try again",
    ShareErrorReason.REMOVE_FAILED: "Failed to remove, please try again",
}


def generate_invite_code() -> str:
    """Generate a random invite code."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def share_error(reason: ShareErrorReason) -> dict[str, Any]:
    """Build the result returned for a refused share operation."""
    return {"error": ERROR_MESSAGES[reason], "reason": reason}


class ShareService:
    """Service for the invite/accept/dissolve lifecycle of shelf shares."""

    def __init__(self, db: Session, collection_service: CollectionService | None = None):
        self.db = db
        self.collection_service = collection_service or CollectionService(db)

    def _open_invite_query(self, owner_id: int):
        return self.db.query(ShelfShare).filter(
            ShelfShare.owner_id == owner_id,
            ShelfShare.status == ShareStatus.PENDING.value,
            ShelfShare.shared_with_id.is_(None),
        )

    def get_open_invite(self, owner_id: int) -> ShelfShare | None:
        """Get the owner's newest unused invite, if any."""
        return (
            self._open_invite_query(owner_id)
            .filter(ShelfShare.invite_code.is_not(None))
            .order_by(ShelfShare.created_at.desc(), ShelfShare.id.desc())
            .first()
        )

    def get_or_create_invite(self, owner_id: int) -> dict[str, Any]:
        """Return the owner's open invite code, creating one if needed.

        Returns:
            {"code": str} or {"error": str, "reason": ShareErrorReason}
        """
        existing = self.get_open_invite(owner_id)
        if existing:
            return {"code": existing.invite_code}

        return self._create_invite(owner_id)

    def regenerate_invite(self, owner_id: int) -> dict[str, Any]:
        """Revoke the owner's unused invite and issue a new code."""
        try:
            deleted = self._open_invite_query(owner_id).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to revoke open invite of user {owner_id}: {e}")
            return share_error(ShareErrorReason.GENERATION_FAILED)

        if deleted:
            logger.info(f"Revoked {deleted} open invite(s) of user {owner_id}")
        return self._create_invite(owner_id)

    def _create_invite(self, owner_id: int) -> dict[str, Any]:
        """Insert a new open invite, retrying on code collisions."""
        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            code = generate_invite_code()
            share = ShelfShare(
                owner_id=owner_id,
                shared_with_id=None,
                invite_code=code,
                status=ShareStatus.PENDING.value,
            )
            self.db.add(share)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                # A concurrent request may have created this owner's invite
                existing = self.get_open_invite(owner_id)
                if existing:
                    return {"code": existing.invite_code}
                logger.warning(f"Invite code collision (attempt {attempt}/{MAX_CODE_ATTEMPTS})")
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to create invite for user {owner_id}: {e}")
                return share_error(ShareErrorReason.GENERATION_FAILED)

            logger.info(f"Created invite {share.id} for user {owner_id}")
            return {"code": code}

        logger.error(f"Gave up generating an invite code for user {owner_id}")
        return share_error(ShareErrorReason.GENERATION_FAILED)

    def _find_accepted_between(self, user_a: int, user_b: int) -> ShelfShare | None:
        return (
            self.db.query(ShelfShare)
            .filter(
                ShelfShare.status == ShareStatus.ACCEPTED.value,
                or_(
                    and_(ShelfShare.owner_id == user_a, ShelfShare.shared_with_id == user_b),
                    and_(ShelfShare.owner_id == user_b, ShelfShare.shared_with_id == user_a),
                ),
            )
            .first()
        )

    def join_by_code(
        self, code: str, user_id: int, delete_collection: bool = False
    ) -> dict[str, Any]:
        """Accept an invite code and become friends with its owner.

        Args:
            code: Invite code received from the owner
            user_id: The joining user
            delete_collection: Purge the joining user's own collection first

        Returns:
            {"success": True, "share_id": int} or {"error": str, "reason": ShareErrorReason}
        """
        invite = self.db.query(ShelfShare).filter(ShelfShare.invite_code == code.strip()).first()

        if invite is None:
            return share_error(ShareErrorReason.NOT_FOUND)
        if invite.owner_id == user_id:
            return share_error(ShareErrorReason.SELF_INVITE)
        if invite.shared_with_id is not None:
            return share_error(ShareErrorReason.ALREADY_USED)
        if invite.status != ShareStatus.PENDING.value:
            return share_error(ShareErrorReason.ALREADY_PROCESSED)

        if self._find_accepted_between(invite.owner_id, user_id):
            return share_error(ShareErrorReason.ALREADY_FRIENDS)

        if delete_collection:
            try:
                alcohol_ids = self.collection_service.delete_user_collection(user_id)
            except CollectionError:
                return share_error(ShareErrorReason.PURGE_FAILED)
            self.collection_service.prune_orphan_alcohols(alcohol_ids)

        # Guarded transition: a concurrent acceptor makes this match zero rows
        try:
            updated = (
                self.db.query(ShelfShare)
                .filter(
                    ShelfShare.id == invite.id,
                    ShelfShare.status == ShareStatus.PENDING.value,
                    ShelfShare.shared_with_id.is_(None),
                )
                .update(
                    {
                        ShelfShare.shared_with_id: user_id,
                        ShelfShare.status: ShareStatus.ACCEPTED.value,
                        ShelfShare.accepted_at: datetime.now(UTC),
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to accept invite {invite.id} for user {user_id}: {e}")
            return share_error(ShareErrorReason.JOIN_FAILED)

        if updated != 1:
            logger.info(f"Invite {invite.id} was accepted concurrently by another user")
            return share_error(ShareErrorReason.ALREADY_USED)

        logger.info(f"User {user_id} joined shelf of user {invite.owner_id} (share {invite.id})")
        return {"success": True, "share_id": invite.id}

    def get_shares_and_friends(self, user_id: int) -> dict[str, Any]:
        """Get the user's open invite and friend list.

        Returns:
            {
                "current_invite": ShelfShare | None,
                "friends": [
                    {"id": int, "share_id": int, "display_name": str | None,
                     "avatar_url": str | None, "since": datetime}
                ]
            }
        """
        accepted = (
            self.db.query(ShelfShare)
            .filter(
                ShelfShare.status == ShareStatus.ACCEPTED.value,
                or_(ShelfShare.owner_id == user_id, ShelfShare.shared_with_id == user_id),
            )
            .order_by(ShelfShare.accepted_at.desc(), ShelfShare.id.desc())
            .all()
        )

        friend_ids = [
            share.shared_with_id if share.owner_id == user_id else share.owner_id
            for share in accepted
        ]
        profiles = {}
        if friend_ids:
            profiles = {
                profile.id: profile
                for profile in self.db.query(Profile).filter(Profile.id.in_(friend_ids)).all()
            }

        friends = []
        for share, friend_id in zip(accepted, friend_ids, strict=True):
            profile = profiles.get(friend_id)
            friends.append(
                {
                    "id": friend_id,
                    "share_id": share.id,
                    "display_name": profile.display_name if profile else None,
                    "avatar_url": profile.avatar_url if profile else None,
                    "since": share.accepted_at or share.created_at,
                }
            )

        return {"current_invite": self.get_open_invite(user_id), "friends": friends}

    def get_friend_user_ids(self, user_id: int) -> list[int]:
        """IDs whose rows the user may read: themselves plus accepted peers."""
        return get_friend_user_ids(self.db, user_id)

    def remove_friend(self, share_id: int, user_id: int) -> dict[str, Any]:
        """Dissolve a friendship. Either party may do so."""
        try:
            deleted = (
                self.db.query(ShelfShare)
                .filter(
                    ShelfShare.id == share_id,
                    ShelfShare.status == ShareStatus.ACCEPTED.value,
                    or_(ShelfShare.owner_id == user_id, ShelfShare.shared_with_id == user_id),
                )
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to remove share {share_id} for user {user_id}: {e}")
            return share_error(ShareErrorReason.REMOVE_FAILED)

        if not deleted:
            return {"error": "Friend not found", "reason": ShareErrorReason.NOT_FOUND}

        logger.info(f"User {user_id} removed share {share_id}")
        return {}

    def delete_invite(self, share_id: int, owner_id: int) -> dict[str, Any]:
        """Delete one of the owner's own share rows, whatever its status."""
        try:
            deleted = (
                self.db.query(ShelfShare)
                .filter(ShelfShare.id == share_id, ShelfShare.owner_id == owner_id)
                .delete(synchronize_session=False)
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete share {share_id} for owner {owner_id}: {e}")
            return share_error(ShareErrorReason.REMOVE_FAILED)

        if not deleted:
            return {"error": "Invite not found", "reason": ShareErrorReason.NOT_FOUND}
        return {}
