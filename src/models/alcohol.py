"""Alcohol catalog model."""

from sqlalchemy import JSON, Column, Float, Integer, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin


class Alcohol(Base, TimestampMixin):
    """A catalogued bottle, shared by every collection entry that references it."""

    __tablename__ = "alcohols"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, index=True)  # 日本酒, ワイン, ウイスキー, ...
    subtype = Column(String(255), nullable=True)
    brand = Column(String(255), nullable=True)
    producer = Column(String(255), nullable=True)
    origin_country = Column(String(100), nullable=True)
    origin_region = Column(String(100), nullable=True)
    alcohol_percentage = Column(Float, nullable=True)
    price_range = Column(String(100), nullable=True)
    characteristics = Column(JSON, nullable=True)  # ["フルーティー", "辛口", ...]
    # Identification payload as returned by the AI service, kept for audit
    raw_llm_response = Column(JSON, nullable=True)

    entries = relationship("CollectionEntry", back_populates="alcohol")
