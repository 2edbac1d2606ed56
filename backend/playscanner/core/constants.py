"""
Centralized constants for caching, search, collection and the scheduler.

Change TTLs, timeouts or job IDs here instead of scattering literals across services and routes.
All durations are in seconds.
"""

# Memory cache TTLs
SEARCH_RESULTS_TTL_SECONDS = 15 * 60
VENUE_DETAILS_TTL_SECONDS = 60 * 60
HEALTH_CHECK_TTL_SECONDS = 5 * 60
PROVIDER_STATUS_TTL_SECONDS = 30

# Memory cache sizing
MEMORY_CACHE_DEFAULT_TTL_SECONDS = SEARCH_RESULTS_TTL_SECONDS
MEMORY_CACHE_MAX_SIZE = 500
MEMORY_CACHE_CLEANUP_INTERVAL_SECONDS = 5 * 60

# Persistent cache
PERSISTENT_CACHE_DEFAULT_TTL_SECONDS = 30 * 60
PERSISTENT_CACHE_UPSERT_RETRIES = 3

# Search fan-out: each provider call is bounded independently
SEARCH_PROVIDER_TIMEOUT_SECONDS = 25.0

# Outbound HTTP
HTTP_REQUEST_TIMEOUT_SECONDS = 30.0

# Provider fetch: batch venues, retry whole fetch with backoff + jitter
PROVIDER_VENUE_BATCH_SIZE = 3
PROVIDER_INTER_BATCH_DELAY_SECONDS = 1.0
PROVIDER_MAX_RETRIES = 3
PROVIDER_RETRY_BASE_DELAY_SECONDS = 2.0
PROVIDER_RETRY_JITTER_SECONDS = 1.0

# Production collector work plan
COLLECTOR_MAX_CONCURRENCY = 2
COLLECTOR_TASK_TIMEOUT_SECONDS = 45.0
COLLECTOR_MAX_RETRIES = 2
COLLECTOR_BACKOFF_BASE_SECONDS = 1.0
COLLECTOR_BACKOFF_CAP_SECONDS = 10.0
COLLECTOR_PRIORITY_BASE = 50

# Simple background collector: polite delay between (city, date) collections
BACKGROUND_COLLECTOR_DAYS_AHEAD = 3
BACKGROUND_COLLECTOR_DELAY_SECONDS = 5.0

# Circuit breaker
CIRCUIT_FAILURE_THRESHOLD = 5
CIRCUIT_COOLDOWN_SECONDS = 60.0

# Scheduler job IDs (must match ids used in main.py add_job)
COLLECTION_JOB_ID = "playscanner_collection"
CACHE_CLEANUP_JOB_ID = "playscanner_cache_cleanup"
CACHE_CLEANUP_INTERVAL_MINUTES = 60

# Collection log queries
RECENT_COLLECTIONS_DEFAULT_LIMIT = 10
STORED_VENUES_DEFAULT_LIMIT = 100
SUCCESS_RATE_DEFAULT_HOURS = 24
