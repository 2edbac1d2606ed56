#!/usr/bin/env python3
"""
Drop the PLAYScanner tables and run all migrations from scratch.
Use when the DB is in a mixed state and you want a clean slate.

Run from backend dir:
  python scripts/drop_schema_and_migrate.py
"""
import subprocess
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import text

from playscanner.db.session import engine
from playscanner.db.tables import ALL_TABLE_NAMES


def main():
    print("Dropping PLAYScanner tables...")
    with engine.connect() as conn:
        for table in ALL_TABLE_NAMES:
            conn.execute(text(f"DROP TABLE IF EXISTS {table}"))
        conn.execute(text("DROP TABLE IF EXISTS alembic_version"))
        conn.commit()
    print("Tables dropped. Running migrations...")
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=backend_dir,
    )
    if result.returncode != 0:
        sys.exit(result.returncode)
    print("Done. All tables created.")


if __name__ == "__main__":
    main()
