"""Generate a batch of sample activities for an empty account.

The inserts are independent, so they run concurrently on a small thread pool
with one session per insert, and the call waits for all of them. If any
insert fails, the entries that did get written are deleted again before the
error is re-raised. A batch is all-or-nothing from the caller's point of view.
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta
from typing import Any, Callable

from sqlalchemy.orm import Session

from ..core.errors import StorageError, TrackerError
from ..crud import entries as entries_crud
from ..crud.entries import require_owner
from ..models.entry import TimeEntry
from .activities import build_manual_entry
from .timecalc import utcnow

logger = logging.getLogger(__name__)

SAMPLE_ACTIVITIES = (
    ("Daily standup meeting", "Team sync and planning for the day"),
    ("Code review session", "Reviewing pull requests from team members"),
    ("Learning a new library", "Deep dive into the docs and a small prototype"),
    ("Morning jog", "Cardio workout around the neighborhood"),
    ("Lunch break", "Enjoyed a nice sandwich and caught up with colleagues"),
    ("Bug fixing", "Fixed critical login issue reported by users"),
    ("Reading technical articles", "Staying up to date with the latest trends"),
    ("Grocery shopping", "Weekly grocery run to stock up on essentials"),
    ("Yoga session", "Relaxing yoga practice to unwind"),
    ("Project planning", "Planning next sprint and prioritizing features"),
)

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 8 * 60
MAX_DAYS_BACK = 14


def sample_payloads(count: int, now: datetime | None = None, rng: random.Random | None = None) -> list[dict[str, Any]]:
    """Build ``count`` validated manual-entry payloads within the last two weeks."""

    rand = rng or random.Random()
    moment = now or utcnow()
    payloads = []
    for index in range(count):
        name, description = SAMPLE_ACTIVITIES[index % len(SAMPLE_ACTIVITIES)]
        duration = rand.randint(MIN_DURATION_MINUTES, MAX_DURATION_MINUTES - 1)
        start = moment - timedelta(
            days=rand.randrange(MAX_DAYS_BACK),
            hours=rand.randrange(24),
            minutes=rand.randrange(60),
        )
        end = start + timedelta(minutes=duration)
        payloads.append(build_manual_entry(name, start, end, description=description))
    return payloads


def _insert_one(session_factory: Callable[[], Session], owner_id: str, payload: dict[str, Any]) -> TimeEntry:
    db = session_factory()
    try:
        entry = entries_crud.create_manual_entry(db, owner_id, payload)
        db.expunge(entry)
        return entry
    finally:
        db.close()


def _discard(session_factory: Callable[[], Session], owner_id: str, entry_ids: list[str]) -> None:
    db = session_factory()
    try:
        for entry_id in entry_ids:
            entries_crud.delete_entry(db, owner_id, entry_id)
    finally:
        db.close()


def create_entries_batch(
    session_factory: Callable[[], Session],
    owner_id: str | None,
    payloads: list[dict[str, Any]],
    *,
    max_workers: int = 4,
) -> list[TimeEntry]:
    """Insert every payload concurrently; returns entries newest-created first."""

    owner = require_owner(owner_id, "create time entries")
    created: list[TimeEntry] = []
    failure: Exception | None = None
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [pool.submit(_insert_one, session_factory, owner, payload) for payload in payloads]
        for future in as_completed(futures):
            try:
                created.append(future.result())
            except TrackerError as exc:
                failure = failure or exc

    if failure is not None:
        logger.error("Sample batch failed after %s of %s inserts; rolling back", len(created), len(payloads))
        _discard(session_factory, owner, [entry.entry_id for entry in created])
        if isinstance(failure, StorageError):
            raise failure
        raise StorageError(f"Failed to create sample activities: {failure}") from failure

    created.sort(key=lambda entry: (entry.created_at, entry.id), reverse=True)
    return created


def create_sample_entries(
    session_factory: Callable[[], Session],
    owner_id: str | None,
    count: int = 10,
    *,
    max_workers: int = 4,
) -> list[TimeEntry]:
    require_owner(owner_id, "create time entries")
    return create_entries_batch(session_factory, owner_id, sample_payloads(count), max_workers=max_workers)
