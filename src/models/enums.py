"""Enums for model fields."""

from enum import Enum


class ShareStatus(str, Enum):
    """Lifecycle states of a shelf share."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ShareErrorReason(str, Enum):
    """Why an invite/share operation was refused."""

    NOT_FOUND = "not_found"
    SELF_INVITE = "self_invite"
    ALREADY_USED = "already_used"
    ALREADY_PROCESSED = "already_processed"
    ALREADY_FRIENDS = "already_friends"
    GENERATION_FAILED = "generation_failed"
    PURGE_FAILED = "purge_failed"
    JOIN_FAILED = "join_failed"
    REMOVE_FAILED = "remove_failed"


class SortField(str, Enum):
    """Columns the shelf can be ordered by."""

    CREATED_AT = "created_at"
    RATING = "rating"
    DRINKING_DATE = "drinking_date"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"

    @property
    def ascending(self) -> bool:
        """Check if this is an ascending order."""
        return self == SortOrder.ASC
