"""
In-process TTL cache with a size bound and oldest-first eviction.

All access goes through one threading lock: the API event loop, scheduler threads and the
cleanup thread share instances. Call destroy() on shutdown to stop the cleanup thread.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from playscanner.core.constants import (
    MEMORY_CACHE_CLEANUP_INTERVAL_SECONDS,
    MEMORY_CACHE_DEFAULT_TTL_SECONDS,
    MEMORY_CACHE_MAX_SIZE,
)

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    written_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.written_at > self.ttl


class MemoryCache:
    def __init__(
        self,
        *,
        default_ttl: float = MEMORY_CACHE_DEFAULT_TTL_SECONDS,
        max_size: int = MEMORY_CACHE_MAX_SIZE,
        cleanup_interval: float | None = MEMORY_CACHE_CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock
        self._data: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._stop = threading.Event()
        self._cleanup_thread: threading.Thread | None = None
        if cleanup_interval:
            self._cleanup_thread = threading.Thread(
                target=self._cleanup_loop,
                args=(cleanup_interval,),
                name="memory-cache-cleanup",
                daemon=True,
            )
            self._cleanup_thread.start()

    def _cleanup_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            removed = self.cleanup()
            if removed:
                logger.debug("Memory cache cleanup removed %s expired entries", removed)

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store value. When full and key is new, the entry with the oldest write time is evicted."""
        entry = _Entry(value, self._clock(), self.default_ttl if ttl is None else ttl)
        with self._lock:
            if key not in self._data and len(self._data) >= self.max_size:
                oldest = min(self._data, key=lambda k: self._data[k].written_at)
                del self._data[oldest]
            self._data[key] = entry

    def get(self, key: str) -> Any | None:
        """Value, or None when missing or expired. Expired entries are removed on read."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expired(self._clock()):
                del self._data[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def cleanup(self) -> int:
        """Remove every expired entry; return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._data.items() if e.expired(now)]
            for k in expired:
                del self._data[k]
            return len(expired)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            now = self._clock()
            expired = sum(1 for e in self._data.values() if e.expired(now))
            lookups = self._hits + self._misses
            return {
                "total": len(self._data),
                "valid": len(self._data) - expired,
                "expired": expired,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
                "max_size": self.max_size,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def destroy(self) -> None:
        """Stop the cleanup thread and drop all entries."""
        self._stop.set()
        if self._cleanup_thread is not None and self._cleanup_thread is not threading.current_thread():
            self._cleanup_thread.join(timeout=5)
        self._cleanup_thread = None
        self.clear()

    @property
    def cleanup_running(self) -> bool:
        return self._cleanup_thread is not None and self._cleanup_thread.is_alive()


# Name used across the search layer
PLAYScannerCache = MemoryCache
