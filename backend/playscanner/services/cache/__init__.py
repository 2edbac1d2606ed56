from playscanner.services.cache.keys import generate_search_key, health_key, persistent_cache_key, venue_key
from playscanner.services.cache.memory import MemoryCache, PLAYScannerCache
from playscanner.services.cache.persistent import CollectionLogEntry, PersistentCacheService

__all__ = [
    "CollectionLogEntry",
    "MemoryCache",
    "PLAYScannerCache",
    "PersistentCacheService",
    "generate_search_key",
    "health_key",
    "persistent_cache_key",
    "venue_key",
]
