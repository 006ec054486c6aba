"""Collection entry model."""

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin


class CollectionEntry(Base, TimestampMixin):
    """One user's record of having tried an alcohol."""

    __tablename__ = "collection_entries"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_collection_entries_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    alcohol_id = Column(Integer, ForeignKey("alcohols.id"), nullable=False, index=True)
    photo_url = Column(String(1024), nullable=True)
    drinking_date = Column(Date, nullable=True)
    rating = Column(Integer, nullable=False)
    memo = Column(Text, nullable=True)

    alcohol = relationship("Alcohol", back_populates="entries")
    user = relationship("User", backref="collection_entries")
