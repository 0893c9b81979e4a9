"""Manual entry and edit flows for the Activities tab.

Validation happens here, before the storage helpers are reached, so a bad
time range or a blank name never produces a write.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import EntryValidationError, NotFoundError
from ..crud import entries as entries_crud
from ..models.entry import TimeEntry
from .entry_ids import generate_entry_id
from .timecalc import elapsed_seconds, parse_iso, utcnow
from .validation import optional_text, require_name, validate_entry_times


def build_manual_entry(
    name: str | None,
    start_time: datetime,
    end_time: datetime,
    *,
    description: str | None = None,
    category: str | None = None,
    entry_id: str | None = None,
) -> dict[str, Any]:
    """Validate a manual entry and return the payload the store expects."""

    cleaned_name = require_name(name)
    validate_entry_times(start_time, end_time)
    return {
        "entry_id": entry_id or generate_entry_id(),
        "name": cleaned_name,
        "description": optional_text(description),
        "category": optional_text(category),
        "start_time": start_time,
        "end_time": end_time,
        "elapsed_time": elapsed_seconds(start_time, end_time),
    }


def create_manual_activity(db: Session, owner_id: str | None, data: dict[str, Any]) -> TimeEntry:
    payload = build_manual_entry(
        data.get("name"),
        data["start_time"],
        data["end_time"],
        description=data.get("description"),
        category=data.get("category"),
    )
    return entries_crud.create_manual_entry(db, owner_id, payload)


def update_activity(db: Session, owner_id: str | None, entry_id: str, data: dict[str, Any]) -> TimeEntry:
    """Apply a partial edit.

    When either bound changes, the effective range is re-validated and the
    elapsed seconds recomputed. An explicit ``elapsed_time`` is only accepted
    on entries that have (or get) an end time.
    """

    entry = entries_crud.get_entry(db, owner_id, entry_id)
    if entry is None:
        raise NotFoundError(f"Time entry {entry_id} not found")

    changes: dict[str, Any] = {}
    if "name" in data:
        changes["name"] = require_name(data["name"])
    for field in ("description", "category"):
        if field in data:
            changes[field] = optional_text(data[field])

    tz = settings.TZ
    start = data.get("start_time") or parse_iso(entry.start_time, tz)
    end = data.get("end_time") or parse_iso(entry.end_time, tz)
    if "start_time" in data or "end_time" in data:
        if end is None:
            if "start_time" in data:
                # Still running: the end will be "now" at submit time.
                if start > utcnow():
                    raise EntryValidationError("Start time cannot be in the future for an activity in progress")
                changes["start_time"] = start
        else:
            validate_entry_times(start, end)
            changes["start_time"] = start
            changes["end_time"] = end
            changes["elapsed_time"] = elapsed_seconds(start, end)
    if "elapsed_time" in data and "elapsed_time" not in changes:
        if end is None:
            raise EntryValidationError("Duration can only be set on an entry with an end time")
        if data["elapsed_time"] is None or data["elapsed_time"] < 0:
            raise EntryValidationError("Duration must be a non-negative number of seconds")
        changes["elapsed_time"] = data["elapsed_time"]

    return entries_crud.update_entry(db, owner_id, entry_id, changes)


def delete_activity(db: Session, owner_id: str | None, entry_id: str) -> None:
    entries_crud.delete_entry(db, owner_id, entry_id)
