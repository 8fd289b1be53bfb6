"""Minimal migration helpers for additive schema changes.

All helpers are idempotent and safe to run on every start.
"""

from typing import List, Tuple

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine

from ..utils.logging import get_logger
from .schema import Base
from .versioned_store import ENTITIES

logger = get_logger(__name__)


def _is_postgres(engine: Engine) -> bool:
    return engine.dialect.name == "postgresql"


def _column_exists(engine: Engine, table: str, column: str) -> bool:
    """Check if a column exists in a table."""
    return column in {c["name"] for c in inspect(engine).get_columns(table)}


def _constraint_exists(conn: Connection, name: str) -> bool:
    """Check if a named constraint exists (PostgreSQL)."""
    row = conn.execute(
        text("SELECT 1 FROM pg_constraint WHERE conname = :name"),
        {"name": name},
    ).first()
    return row is not None


def ensure_schema(engine: Engine) -> None:
    """Create any missing tables and indexes. Existing tables are left alone."""
    Base.metadata.create_all(engine)


def ensure_searchable_address_column(engine: Engine) -> None:
    """
    Add addresses.searchable_address if missing.

    Older projections were created before full-text search over addresses.
    """
    if not inspect(engine).has_table("addresses"):
        return
    if _column_exists(engine, "addresses", "searchable_address"):
        return
    with engine.begin() as conn:
        conn.execute(text("ALTER TABLE addresses ADD COLUMN searchable_address TEXT"))
    logger.info("Added addresses.searchable_address")


def ensure_search_extensions(engine: Engine) -> None:
    """
    Install pg_trgm and btree_gist on PostgreSQL; no-op elsewhere.

    SQLite gets its search functions per connection (see ``functions``).
    """
    if not _is_postgres(engine):
        return
    with engine.begin() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS pg_trgm"))
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))


def block_range_constraints() -> List[Tuple[str, str, str]]:
    """(constraint name, table, natural key column) for every unique entity."""
    return [
        (f"{spec.name}_no_overlapping_versions", spec.model.__tablename__, spec.key_field)
        for spec in ENTITIES.values()
        if spec.unique
    ]


def ensure_block_range_exclusion(engine: Engine) -> None:
    """
    Enforce non-overlapping validity intervals on PostgreSQL.

    Adds a GiST exclusion constraint per unique entity, so two versions of
    one natural key can never share a block. No-op on other dialects; use
    ``integrity.check_integrity`` there.
    """
    if not _is_postgres(engine):
        return
    ensure_search_extensions(engine)
    with engine.begin() as conn:
        for name, table, key in block_range_constraints():
            if _constraint_exists(conn, name):
                continue
            conn.execute(text(
                f"ALTER TABLE {table} ADD CONSTRAINT {name} EXCLUDE USING gist ("
                f"{key} WITH =, "
                f"int8range(start_block_num, end_block_num) WITH &&)"
            ))
            logger.info("Added exclusion constraint %s on %s", name, table)


def migrate(engine: Engine) -> None:
    """Run every additive migration in order."""
    ensure_search_extensions(engine)
    ensure_schema(engine)
    ensure_searchable_address_column(engine)
    ensure_block_range_exclusion(engine)
