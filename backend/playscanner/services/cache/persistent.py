"""
Persistent availability cache (playscanner_cache), collection audit log and venue metadata.

Best-effort layer: reads and stat queries degrade to None/empty/zero on database errors
because callers always have live fetch as a fallback. Only set_cached_data raises, after
retrying unique-key races, so a collector can count the write as a failed task.
"""
import json
import logging
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator

from pydantic import TypeAdapter
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from playscanner.core.constants import (
    PERSISTENT_CACHE_DEFAULT_TTL_SECONDS,
    PERSISTENT_CACHE_UPSERT_RETRIES,
    RECENT_COLLECTIONS_DEFAULT_LIMIT,
    STORED_VENUES_DEFAULT_LIMIT,
    SUCCESS_RATE_DEFAULT_HOURS,
)
from playscanner.models import CacheEntryRow, CollectionLog, VenueRow
from playscanner.services.cache.keys import persistent_cache_key
from playscanner.services.filters import filter_by_search_params, sort_by_time_then_price
from playscanner.services.providers.types import CourtSlot, SearchParams, SearchResult, Venue

logger = logging.getLogger(__name__)

_SLOTS = TypeAdapter(list[CourtSlot])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything stored here is UTC."""
    if dt is None:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _iso(dt: datetime | None) -> str | None:
    dt = _as_utc(dt)
    return dt.isoformat() if dt else None


def format_cache_age(created_at: datetime | None, now: datetime | None = None) -> str:
    """fresh (< 1 min), Nm old (< 1 h), Nh old; unknown when there is no timestamp."""
    created_at = _as_utc(created_at)
    if created_at is None:
        return "unknown"
    minutes = int(((now or _utcnow()) - created_at).total_seconds() // 60)
    if minutes < 1:
        return "fresh"
    if minutes < 60:
        return f"{minutes}m old"
    return f"{minutes // 60}h old"


@dataclass
class CollectionLogEntry:
    collection_id: str
    city: str
    date: str
    status: str  # success | error | partial
    slots_collected: int = 0
    venues_processed: int = 0
    error_message: str | None = None
    execution_time_ms: int = 0
    provider: str = "playtomic"


def list_stored_venues(
    db: Session,
    city: str | None = None,
    provider: str | None = None,
    *,
    include_inactive: bool = False,
    limit: int = STORED_VENUES_DEFAULT_LIMIT,
) -> list[dict[str, Any]]:
    """Venues recorded by collection runs, by name. City matches case-insensitively."""
    q = db.query(VenueRow)
    if city:
        q = q.filter(VenueRow.city == city.strip().lower())
    if provider:
        q = q.filter(VenueRow.provider == provider)
    if not include_inactive:
        q = q.filter(VenueRow.is_active.is_(True))
    rows = q.order_by(VenueRow.venue_name, VenueRow.venue_id).limit(limit).all()
    return [
        {
            "provider": r.provider,
            "venue_id": r.venue_id,
            "city": r.city,
            "name": r.venue_name,
            "is_active": r.is_active,
            "last_seen": _iso(r.last_seen),
            "venue": json.loads(r.venue_json) if r.venue_json else None,
        }
        for r in rows
    ]


class PersistentCacheService:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        default_ttl: float = PERSISTENT_CACHE_DEFAULT_TTL_SECONDS,
        upsert_retries: int = PERSISTENT_CACHE_UPSERT_RETRIES,
        retry_delay: float = 1.0,
    ) -> None:
        self._session_factory = session_factory
        self.default_ttl = default_ttl
        self.upsert_retries = max(1, upsert_retries)
        self.retry_delay = retry_delay

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    # --- reads ---

    def search(self, params: SearchParams) -> SearchResult:
        """Cached slots for (location, date) with request filters applied, sorted by time then price."""
        started = time.monotonic()

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        try:
            slots = self.get_cached_data(params.location, params.date)
            if not slots:
                return SearchResult(
                    results=[], total_results=0, search_time=elapsed_ms(), providers=[],
                    filters=params, source="cached", cache_age="empty",
                )
            filtered = sort_by_time_then_price(filter_by_search_params(slots, params))
            providers = sorted({s.provider for s in filtered})
            return SearchResult(
                results=filtered,
                total_results=len(filtered),
                search_time=elapsed_ms(),
                providers=providers,
                filters=params,
                source="cached",
                cache_age=self.get_cache_age(params.location, params.date),
            )
        except Exception:
            logger.exception("Persistent cache search failed for %s %s", params.location, params.date)
            return SearchResult(
                results=[], total_results=0, search_time=elapsed_ms(), providers=[],
                filters=params, source="cached", cache_age="error",
            )

    def get_cached_data(self, city: str, date: str) -> list[CourtSlot] | None:
        """Unexpired slots for (city, date), or None on miss or any read/decode failure."""
        key = persistent_cache_key(city, date)
        try:
            with self._session() as db:
                row = (
                    db.query(CacheEntryRow)
                    .filter(CacheEntryRow.cache_key == key, CacheEntryRow.expires_at > _utcnow())
                    .first()
                )
                if not row or not row.slots_json:
                    return None
                slots = _SLOTS.validate_json(row.slots_json)
        except SQLAlchemyError:
            logger.exception("Persistent cache read failed for %s", key)
            return None
        except ValueError as e:
            logger.warning("Persistent cache row %s is not decodable: %s", key, e)
            return None
        logger.debug("Serving %s slots from persistent cache: %s", len(slots), key)
        return slots

    def get_cache_age(self, city: str, date: str) -> str:
        key = persistent_cache_key(city, date)
        try:
            with self._session() as db:
                row = db.query(CacheEntryRow.created_at).filter(CacheEntryRow.cache_key == key).first()
        except SQLAlchemyError:
            logger.warning("Cache age lookup failed for %s", key, exc_info=True)
            return "unknown"
        return format_cache_age(row[0] if row else None)

    # --- writes ---

    def set_cached_data(
        self,
        city: str,
        date: str,
        slots: list[CourtSlot],
        ttl: float | None = None,
    ) -> None:
        """
        Upsert the (city, date) row. Unique-key races with a concurrent writer are retried
        with linear backoff; other database errors and the final failed attempt raise.
        """
        key = persistent_cache_key(city, date)
        ttl = self.default_ttl if ttl is None else ttl
        slots_json = _SLOTS.dump_json(slots, by_alias=True).decode()
        metadata = {
            "totalSlots": len(slots),
            "uniqueVenues": len({s.venue.id for s in slots}),
            "collectedAt": _utcnow().isoformat(),
            "provider": slots[0].provider if slots else "playtomic",
        }
        for attempt in range(1, self.upsert_retries + 1):
            now = _utcnow()
            with self._session() as db:
                try:
                    row = db.query(CacheEntryRow).filter(CacheEntryRow.cache_key == key).first()
                    if not row:
                        row = CacheEntryRow(cache_key=key)
                        db.add(row)
                    row.city = city.strip().lower()
                    row.date = date
                    row.slots_json = slots_json
                    row.metadata_json = json.dumps(metadata)
                    row.total_slots = len(slots)
                    row.created_at = now
                    row.expires_at = now + timedelta(seconds=ttl)
                    db.commit()
                except IntegrityError:
                    db.rollback()
                    if attempt >= self.upsert_retries:
                        logger.error("Cache upsert for %s failed after %s attempts", key, attempt)
                        raise
                    logger.warning(
                        "Duplicate key conflict for %s, retrying (%s/%s)", key, attempt, self.upsert_retries
                    )
                    time.sleep(self.retry_delay * attempt)
                    continue
                except SQLAlchemyError:
                    db.rollback()
                    logger.exception("Cache upsert for %s failed", key)
                    raise
            logger.info("Cached %s slots for %s %s (ttl %ss)", len(slots), city, date, int(ttl))
            return

    def log_collection(self, entry: CollectionLogEntry) -> None:
        """Append one audit row. Never raises: a failed log write must not abort a collection."""
        try:
            with self._session() as db:
                data = asdict(entry)
                data["city"] = entry.city.strip().lower()
                db.add(CollectionLog(**data))
                db.commit()
        except SQLAlchemyError:
            logger.exception("Failed to log collection %s for %s %s", entry.collection_id, entry.city, entry.date)

    def store_venue(self, venue: Venue, city: str) -> None:
        """Upsert venue metadata by (provider, venue id). Never raises."""
        try:
            with self._session() as db:
                row = db.get(VenueRow, (venue.provider, venue.id))
                if not row:
                    row = VenueRow(provider=venue.provider, venue_id=venue.id)
                    db.add(row)
                row.city = city.strip().lower()
                row.venue_name = venue.name
                row.venue_json = venue.model_dump_json(by_alias=True)
                row.is_active = True
                row.last_seen = _utcnow()
                db.commit()
        except SQLAlchemyError:
            logger.exception("Failed to store venue %s/%s", venue.provider, venue.id)

    def cleanup(self) -> int:
        """Delete rows past expiry; return how many were removed (0 on failure)."""
        try:
            with self._session() as db:
                removed = (
                    db.query(CacheEntryRow)
                    .filter(CacheEntryRow.expires_at <= _utcnow())
                    .delete(synchronize_session=False)
                )
                db.commit()
        except SQLAlchemyError:
            logger.exception("Persistent cache cleanup failed")
            return 0
        if removed:
            logger.info("Cleaned up %s expired cache entries", removed)
        return removed

    # --- stats / health ---

    @staticmethod
    def default_stats() -> dict[str, Any]:
        return {
            "total_entries": 0,
            "active_entries": 0,
            "expired_entries": 0,
            "total_slots": 0,
            "cities_covered": 0,
            "date_range": {"oldest": None, "newest": None},
            "last_collection": None,
            "memory_usage": "N/A",
        }

    def get_cache_stats(self) -> dict[str, Any]:
        try:
            with self._session() as db:
                now = _utcnow()
                total = db.query(func.count(CacheEntryRow.id)).scalar() or 0
                active_q = db.query(CacheEntryRow).filter(CacheEntryRow.expires_at > now)
                active = active_q.count()
                total_slots = (
                    db.query(func.coalesce(func.sum(CacheEntryRow.total_slots), 0))
                    .filter(CacheEntryRow.expires_at > now)
                    .scalar()
                )
                cities = (
                    db.query(func.count(func.distinct(CacheEntryRow.city)))
                    .filter(CacheEntryRow.expires_at > now)
                    .scalar()
                )
                oldest, newest = db.query(func.min(CacheEntryRow.date), func.max(CacheEntryRow.date)).one()
                last_collection = db.query(func.max(CollectionLog.created_at)).scalar()
        except SQLAlchemyError:
            logger.exception("Cache stats query failed")
            return self.default_stats()
        return {
            "total_entries": total,
            "active_entries": active,
            "expired_entries": total - active,
            "total_slots": int(total_slots or 0),
            "cities_covered": cities or 0,
            "date_range": {"oldest": oldest, "newest": newest},
            "last_collection": _iso(last_collection),
            "memory_usage": "N/A (Database)",
        }

    def health_check(self) -> dict[str, Any]:
        """{"healthy": bool, "details": {...}}. Database unreachable -> healthy False."""
        try:
            with self._session() as db:
                db.query(func.count(CacheEntryRow.id)).scalar()
        except SQLAlchemyError as e:
            logger.warning("Persistent cache health check failed: %s", e)
            return {"healthy": False, "details": {"error": str(e)}}
        stats = self.get_cache_stats()
        return {
            "healthy": True,
            "details": {
                "connection": "ok",
                "active_entries": stats["active_entries"],
                "total_slots": stats["total_slots"],
                "last_collection": stats["last_collection"],
            },
        }

    def get_recent_collections(self, limit: int = RECENT_COLLECTIONS_DEFAULT_LIMIT) -> list[dict[str, Any]]:
        try:
            with self._session() as db:
                rows = (
                    db.query(CollectionLog)
                    .order_by(CollectionLog.created_at.desc(), CollectionLog.id.desc())
                    .limit(limit)
                    .all()
                )
                return [
                    {
                        "collection_id": r.collection_id,
                        "city": r.city,
                        "date": r.date,
                        "status": r.status,
                        "slots_collected": r.slots_collected,
                        "venues_processed": r.venues_processed,
                        "error_message": r.error_message,
                        "execution_time_ms": r.execution_time_ms,
                        "provider": r.provider,
                        "created_at": _iso(r.created_at),
                    }
                    for r in rows
                ]
        except SQLAlchemyError:
            logger.exception("Failed to fetch recent collections")
            return []

    def get_collection_success_rate(self, hours: float = SUCCESS_RATE_DEFAULT_HOURS) -> float:
        """Percentage (0-100) of log rows with status success in the last `hours`. 0 when none."""
        since = _utcnow() - timedelta(hours=hours)
        try:
            with self._session() as db:
                rows = db.query(CollectionLog.status).filter(CollectionLog.created_at >= since).all()
        except SQLAlchemyError:
            logger.exception("Failed to compute collection success rate")
            return 0.0
        if not rows:
            return 0.0
        ok = sum(1 for (status,) in rows if status == "success")
        return ok / len(rows) * 100
