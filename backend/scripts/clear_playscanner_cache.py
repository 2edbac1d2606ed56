#!/usr/bin/env python3
"""Delete cached availability and venues. The collection log is kept.
Run from backend: python scripts/clear_playscanner_cache.py
"""
import sys
from pathlib import Path

# Ensure backend is on path when run as script
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import text

from playscanner.db.session import SessionLocal
from playscanner.db.tables import CACHE_TABLE_NAMES


def main():
    db = SessionLocal()
    try:
        print("Cache cleared. Rows deleted:")
        for table in CACHE_TABLE_NAMES:
            count = db.execute(text(f"DELETE FROM {table}")).rowcount
            print(f"  {table}: {count}")
        db.commit()
        print()
        print("The next scheduled collection repopulates the cache (or run scripts/collect_data.py).")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
