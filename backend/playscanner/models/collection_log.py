"""Append-only audit of collection attempts (one row per task attempt)."""
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from playscanner.db.base import Base


class CollectionLog(Base):
    __tablename__ = "playscanner_collection_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    collection_id = Column(String(64), nullable=False, index=True)
    city = Column(String(64), nullable=False)
    date = Column(String(10), nullable=False)
    status = Column(String(16), nullable=False)  # success | error | partial
    slots_collected = Column(Integer, nullable=False, default=0)
    venues_processed = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    execution_time_ms = Column(Integer, nullable=False, default=0)
    provider = Column(String(32), nullable=False, default="playtomic")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
