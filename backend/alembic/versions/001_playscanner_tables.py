"""PLAYScanner tables: persistent availability cache, collection log, venues.

Revision ID: 001
Revises:
Create Date: (run alembic upgrade head)

- playscanner_cache: one row per (city, date); slots replaced wholesale on each collection.
- playscanner_collection_log: append-only audit of collection attempts.
- playscanner_venues: venue metadata seen during collection, keyed by (provider, venue_id).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "playscanner_cache",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("cache_key", sa.String(128), nullable=False, unique=True),
        sa.Column("city", sa.String(64), nullable=False),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("slots_json", sa.Text(), nullable=False),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.Column("total_slots", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_playscanner_cache_city", "playscanner_cache", ["city"])
    op.create_index("ix_playscanner_cache_date", "playscanner_cache", ["date"])
    op.create_index("ix_playscanner_cache_expires_at", "playscanner_cache", ["expires_at"])

    op.create_table(
        "playscanner_collection_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("collection_id", sa.String(64), nullable=False),
        sa.Column("city", sa.String(64), nullable=False),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("slots_collected", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("venues_processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("execution_time_ms", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("provider", sa.String(32), nullable=False, server_default="playtomic"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "ix_playscanner_collection_log_collection_id", "playscanner_collection_log", ["collection_id"]
    )
    op.create_index("ix_playscanner_collection_log_created_at", "playscanner_collection_log", ["created_at"])

    op.create_table(
        "playscanner_venues",
        sa.Column("provider", sa.String(32), primary_key=True),
        sa.Column("venue_id", sa.String(64), primary_key=True),
        sa.Column("city", sa.String(64), nullable=True),
        sa.Column("venue_name", sa.String(256), nullable=True),
        sa.Column("venue_json", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("first_seen_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_seen", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("playscanner_venues")
    op.drop_index("ix_playscanner_collection_log_created_at", table_name="playscanner_collection_log")
    op.drop_index("ix_playscanner_collection_log_collection_id", table_name="playscanner_collection_log")
    op.drop_table("playscanner_collection_log")
    op.drop_index("ix_playscanner_cache_expires_at", table_name="playscanner_cache")
    op.drop_index("ix_playscanner_cache_date", table_name="playscanner_cache")
    op.drop_index("ix_playscanner_cache_city", table_name="playscanner_cache")
    op.drop_table("playscanner_cache")
