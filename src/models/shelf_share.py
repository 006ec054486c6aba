"""Shelf sharing model."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.enums import ShareStatus
from src.models.mixins import TimestampMixin

OPEN_INVITE_CLAUSE = text("status = 'pending' AND shared_with_id IS NULL")


class ShelfShare(Base, TimestampMixin):
    """Invite token that becomes a friendship once accepted.

    A row starts as an open invite (pending, no acceptor, invite_code set) and
    moves to accepted exactly once, when another user joins with the code.
    Friendship is dissolved by deleting the row.
    """

    __tablename__ = "shelf_shares"
    __table_args__ = (
        CheckConstraint(
            "shared_with_id IS NULL OR owner_id <> shared_with_id",
            name="ck_shelf_shares_not_self",
        ),
        Index(
            "uq_shelf_shares_open_invite",
            "owner_id",
            unique=True,
            postgresql_where=OPEN_INVITE_CLAUSE,
            sqlite_where=OPEN_INVITE_CLAUSE,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    shared_with_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    invite_code = Column(String(16), unique=True, nullable=True)
    status = Column(String(20), nullable=False, default=ShareStatus.PENDING.value, index=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("User", foreign_keys=[owner_id])
    shared_with = relationship("User", foreign_keys=[shared_with_id])

    @property
    def is_open_invite(self) -> bool:
        """Check if this row is still an unused invite."""
        return self.status == ShareStatus.PENDING.value and self.shared_with_id is None
