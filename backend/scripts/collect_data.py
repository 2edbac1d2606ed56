#!/usr/bin/env python3
"""
Run one collection pass outside the server (cron, CI, or a first warm-up).

  python scripts/collect_data.py
  python scripts/collect_data.py --mode simple --cities London,Manchester --days 3
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from playscanner.config import settings
from playscanner.db.session import SessionLocal
from playscanner.services.cache.persistent import PersistentCacheService
from playscanner.services.collector.background import BackgroundCollector
from playscanner.services.collector.production import ProductionCollector
from playscanner.services.providers.playtomic_provider import PlaytomicProvider


def main():
    parser = argparse.ArgumentParser(description="Collect padel availability into the persistent cache")
    parser.add_argument("--mode", choices=("production", "simple"), default="production")
    parser.add_argument("--cities", default=settings.collector_cities, help="Comma-separated city names")
    parser.add_argument("--days", type=int, default=settings.collector_days_ahead, help="Days ahead, including today")
    args = parser.parse_args()

    cities = [c.strip() for c in args.cities.split(",") if c.strip()]
    provider = PlaytomicProvider(rate_limit=settings.playtomic_rate_limit, debug=settings.playscanner_debug)
    cache = PersistentCacheService(SessionLocal, default_ttl=settings.persistent_cache_ttl_minutes * 60)

    if args.mode == "simple":
        collector = BackgroundCollector(provider, cache, cities=cities, days_ahead=args.days)
        out = asyncio.run(collector.collect_all())
        failed = False
    else:
        collector = ProductionCollector(provider, cache, cities=cities, days_ahead=args.days)
        result = asyncio.run(collector.collect_with_intelligence())
        out = result.to_dict()
        failed = result.status == "partial_failure"

    print(json.dumps(out, indent=2, default=str))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
