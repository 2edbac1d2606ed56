"""Persistent availability cache: one row per (city, date) collection, replaced wholesale on each write."""
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from playscanner.db.base import Base


class CacheEntryRow(Base):
    __tablename__ = "playscanner_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cache_key = Column(String(128), nullable=False, unique=True)  # city:date, lower-cased city
    city = Column(String(64), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    slots_json = Column(Text, nullable=False)
    metadata_json = Column(Text, nullable=True)  # totalSlots, uniqueVenues, collectedAt, provider
    total_slots = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
