"""Tiny home-grown migration helpers for SQLite stores created by older builds."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Simple, idempotent migrations for SQLite.
# We only ADD columns and indexes. Nothing is dropped.


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    """Fetch SQLite's description of a table so we know what columns exist."""

    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()


def _column_names(engine: Engine, table: str) -> set[str]:
    return {record["name"] for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    """ALTER TABLE ADD COLUMN helper."""
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> None:
    """Bring an existing SQLite schema up-to-date with the models."""

    if engine.dialect.name != "sqlite":
        return

    ecols = _column_names(engine, "time_entries")
    if not ecols:
        # Table absent -> Base.metadata.create_all builds the fresh schema.
        return

    entry_needed: dict[str, str] = {
        "description": "TEXT",
        "category": "TEXT",
        "elapsed_time": "INTEGER",
        "user_id": "TEXT",
        "updated_at": "TEXT",
    }
    for name, dtype in entry_needed.items():
        if name not in ecols:
            logger.info("Adding column time_entries.%s", name)
            _add_column_sqlite(engine, "time_entries", f"{name} {dtype}")

    with engine.begin() as conn:
        conn.execute(text("UPDATE time_entries SET updated_at = created_at WHERE updated_at IS NULL"))
        # Entries that were never attributed to an owner cannot be scoped; drop them.
        deleted = conn.execute(text("DELETE FROM time_entries WHERE user_id IS NULL")).rowcount
    if deleted:
        logger.warning("Removed %s unowned time entries", deleted)

    _create_index_if_not_exists(engine, "time_entries", "ix_time_entries_user_id", ["user_id"])
    _create_index_if_not_exists(engine, "time_entries", "ix_time_entries_user_created", ["user_id", "created_at"])
    _create_index_if_not_exists(engine, "time_entries", "ix_time_entries_entry_id", ["entry_id"], unique=True)

    ccols = _column_names(engine, "categories")
    if ccols and "color" not in ccols:
        _add_column_sqlite(engine, "categories", "color TEXT")
