"""
Single source of truth for database tables that exist after migrations.

Use these names when writing raw SQL (e.g. TRUNCATE) and in alembic/env.py checks.
"""
# All tables that exist in the DB. Must match models and migrations.
ALL_TABLE_NAMES = (
    "playscanner_cache",
    "playscanner_collection_log",
    "playscanner_venues",
)

# Tables cleared when resetting cached availability (TRUNCATE). Collection log is kept.
CACHE_TABLE_NAMES = (
    "playscanner_cache",
    "playscanner_venues",
)
