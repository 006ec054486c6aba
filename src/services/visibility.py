"""Row visibility between friends.

A user sees their own rows plus the rows of every user they share an
accepted shelf with, in either direction.
"""

from sqlalchemy import or_
from sqlalchemy.orm import Session

from src.models.enums import ShareStatus
from src.models.shelf_share import ShelfShare


def get_friend_user_ids(db: Session, user_id: int) -> list[int]:
    """Get IDs of the user and all accepted-share peers."""
    user_ids = {user_id}

    shares = (
        db.query(ShelfShare.owner_id, ShelfShare.shared_with_id)
        .filter(
            ShelfShare.status == ShareStatus.ACCEPTED.value,
            or_(ShelfShare.owner_id == user_id, ShelfShare.shared_with_id == user_id),
        )
        .all()
    )
    for owner_id, shared_with_id in shares:
        user_ids.add(shared_with_id if owner_id == user_id else owner_id)

    user_ids.discard(None)
    return sorted(user_ids)


def can_view(db: Session, viewer_id: int, owner_id: int) -> bool:
    """Check whether `viewer_id` may read rows owned by `owner_id`."""
    return owner_id in get_friend_user_ids(db, viewer_id)
