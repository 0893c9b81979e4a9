"""Owner-scoped storage helpers for time entries.

Every helper takes the current owner id and refuses to run without one.
Entries are addressed by their caller-generated ``entry_id``; the integer row
id never leaves this module. Database failures are logged, rolled back and
re-raised as ``StorageError`` carrying the attempted operation.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import AuthRequiredError, ConflictError, NotFoundError, StorageError
from ..models.entry import PLACEHOLDER_NAME, TimeEntry
from ..services.timecalc import to_iso, utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "category", "start_time", "end_time", "elapsed_time")


def require_owner(owner_id: str | None, action: str) -> str:
    if not owner_id:
        raise AuthRequiredError(f"User must be authenticated to {action}")
    return owner_id


@contextmanager
def storage_errors(db: Session, action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        reason = getattr(exc, "orig", None) or exc
        logger.error("Error trying to %s: %s", action, reason)
        raise StorageError(f"Failed to {action}: {reason}") from exc


def _stored_value(field: str, value: Any) -> Any:
    if field in {"start_time", "end_time"} and isinstance(value, datetime):
        return to_iso(value)
    return value


def _owned(owner_id: str):
    return select(TimeEntry).where(TimeEntry.user_id == owner_id)


def get_entry(db: Session, owner_id: str | None, entry_id: str) -> TimeEntry | None:
    owner = require_owner(owner_id, "fetch time entries")
    with storage_errors(db, "fetch time entry"):
        return db.execute(_owned(owner).where(TimeEntry.entry_id == entry_id)).scalars().first()


def get_in_progress_entry(db: Session, owner_id: str | None) -> TimeEntry | None:
    owner = require_owner(owner_id, "fetch time entries")
    stmt = _owned(owner).where(TimeEntry.end_time.is_(None)).order_by(desc(TimeEntry.start_time)).limit(1)
    with storage_errors(db, "fetch in-progress time entry"):
        return db.execute(stmt).scalars().first()


def list_entries(db: Session, owner_id: str | None, limit: int | None = None, offset: int = 0) -> list[TimeEntry]:
    """All entries for the owner, newest created first."""

    owner = require_owner(owner_id, "fetch time entries")
    stmt = _owned(owner).order_by(desc(TimeEntry.created_at), desc(TimeEntry.id)).offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    with storage_errors(db, "fetch time entries"):
        return list(db.execute(stmt).scalars().all())


def create_entry(db: Session, owner_id: str | None, entry_id: str, start_time: datetime) -> TimeEntry:
    """Insert the placeholder row written when a timer starts."""

    owner = require_owner(owner_id, "create time entries")
    if get_in_progress_entry(db, owner) is not None:
        raise ConflictError("You already have an activity in progress. Please stop it before starting a new one.")
    now = to_iso(utcnow())
    entry = TimeEntry(
        entry_id=entry_id,
        user_id=owner,
        name=PLACEHOLDER_NAME,
        start_time=to_iso(start_time),
        created_at=now,
        updated_at=now,
    )
    with storage_errors(db, "create time entry"):
        db.add(entry)
        db.commit()
        db.refresh(entry)
    return entry


def create_manual_entry(db: Session, owner_id: str | None, payload: dict[str, Any]) -> TimeEntry:
    """Insert a fully-formed entry in one shot (manual entry and sample batches)."""

    owner = require_owner(owner_id, "create time entries")
    now = to_iso(utcnow())
    entry = TimeEntry(
        entry_id=payload["entry_id"],
        user_id=owner,
        name=payload["name"],
        description=payload.get("description"),
        category=payload.get("category"),
        start_time=_stored_value("start_time", payload["start_time"]),
        end_time=_stored_value("end_time", payload["end_time"]),
        elapsed_time=payload["elapsed_time"],
        created_at=now,
        updated_at=now,
    )
    with storage_errors(db, "create time entry"):
        db.add(entry)
        db.commit()
        db.refresh(entry)
    return entry


def update_entry(db: Session, owner_id: str | None, entry_id: str, payload: dict[str, Any]) -> TimeEntry:
    owner = require_owner(owner_id, "update time entries")
    entry = get_entry(db, owner, entry_id)
    if entry is None:
        raise NotFoundError(f"Time entry {entry_id} not found")
    for field in UPDATABLE_FIELDS:
        if field in payload:
            setattr(entry, field, _stored_value(field, payload[field]))
    entry.updated_at = to_iso(utcnow())
    with storage_errors(db, "update time entry"):
        db.commit()
        db.refresh(entry)
    return entry


def complete_entry(db: Session, owner_id: str | None, entry_id: str, payload: dict[str, Any]) -> TimeEntry:
    """Attach metadata, end time and elapsed seconds to a timer-started entry."""

    data = {field: payload.get(field) for field in ("name", "description", "category", "end_time", "elapsed_time")}
    return update_entry(db, owner_id, entry_id, data)


def delete_entry(db: Session, owner_id: str | None, entry_id: str) -> None:
    owner = require_owner(owner_id, "delete time entries")
    entry = get_entry(db, owner, entry_id)
    if entry is None:
        raise NotFoundError(f"Time entry {entry_id} not found")
    with storage_errors(db, "delete time entry"):
        db.delete(entry)
        db.commit()


__all__ = [
    "complete_entry",
    "create_entry",
    "create_manual_entry",
    "delete_entry",
    "get_entry",
    "get_in_progress_entry",
    "list_entries",
    "require_owner",
    "storage_errors",
    "update_entry",
]
