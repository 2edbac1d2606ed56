from playscanner.db.base import Base
from playscanner.db.tables import ALL_TABLE_NAMES, CACHE_TABLE_NAMES

__all__ = ["Base", "ALL_TABLE_NAMES", "CACHE_TABLE_NAMES"]
