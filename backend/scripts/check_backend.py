#!/usr/bin/env python3
"""
Quick checks so the backend can start. Run from backend/:
  python scripts/check_backend.py
"""
import os
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


def main():
    errors = []

    # 1) .env
    env_file = backend_dir / ".env"
    if not env_file.exists():
        errors.append("backend/.env missing. Set DATABASE_URL and PLAYSCANNER_* there.")
    else:
        print("OK  .env exists")

    # 2) DB connection and tables
    try:
        from sqlalchemy import inspect, text

        from playscanner.db.session import engine
        from playscanner.db.tables import ALL_TABLE_NAMES

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("OK  Database connection (DATABASE_URL)")
        missing = set(ALL_TABLE_NAMES) - set(inspect(engine).get_table_names())
        if missing:
            errors.append(f"Missing tables {sorted(missing)}. Run: alembic upgrade head")
            print("FAIL Tables missing:", ", ".join(sorted(missing)))
        else:
            print("OK  PLAYScanner tables present")
    except Exception as e:
        errors.append(f"Database: {e}")
        print("FAIL Database:", e)

    # 3) App import (catches missing deps, bad imports)
    try:
        from playscanner.main import app  # noqa: F401
        print("OK  App import (playscanner.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)
        print("\nFix the above, then run:")
        print("  cd backend && uvicorn playscanner.main:app --reload --host 0.0.0.0 --port 8000")
        return 1

    # 4) Playtomic reachable
    try:
        import asyncio

        from playscanner.services.providers.playtomic_provider import PlaytomicProvider

        if asyncio.run(PlaytomicProvider().health_check()):
            print("OK  Playtomic reachable")
        else:
            print("WARN Playtomic health check failed (searches may return no results)")
    except Exception as e:
        print("WARN Playtomic check:", e)

    # 5) Port 8000
    try:
        import socket
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 8000))
        print("OK  Port 8000 is free")
    except OSError:
        errors.append("Port 8000 is in use. Stop the other process or use another port (e.g. --port 8001).")
        print("FAIL Port 8000 is in use")

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        return 1

    print("\nAll checks passed. Start with: uvicorn playscanner.main:app --reload")
    return 0


if __name__ == "__main__":
    sys.exit(main())
