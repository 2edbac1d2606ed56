from playscanner.models.cache_entry import CacheEntryRow
from playscanner.models.collection_log import CollectionLog
from playscanner.models.venue import VenueRow

__all__ = [
    "CacheEntryRow",
    "CollectionLog",
    "VenueRow",
]
