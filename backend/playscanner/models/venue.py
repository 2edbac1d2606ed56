"""Venue metadata seen during collection, keyed by (provider, venue_id)."""
from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.sql import func

from playscanner.db.base import Base


class VenueRow(Base):
    __tablename__ = "playscanner_venues"

    provider = Column(String(32), primary_key=True)
    venue_id = Column(String(64), primary_key=True)
    city = Column(String(64), nullable=True)
    venue_name = Column(String(256), nullable=True)
    venue_json = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    first_seen_at = Column(DateTime(timezone=True), server_default=func.now())
    last_seen = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
