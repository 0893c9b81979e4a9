"""Glue between an owner's ``SessionTimer`` and the entry store.

Order matters on every path: the store is written first and the timer only
moves once that succeeds, except for ``stop`` which never touches storage.
A failed submit leaves the timer in ``stopped_pending_metadata`` so the user
can retry.

The timer lives on the event loop while the store is synchronous SQLAlchemy,
so storage calls run in the threadpool. Each owner's transitions are
serialised on ``timer.lock`` to keep the two sides in step.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..core.errors import ConflictError, NotFoundError
from ..crud import entries as entries_crud
from ..models.entry import TimeEntry
from .entry_ids import generate_entry_id
from .timer import SessionTimer, TimerPhase, TimerState
from .timecalc import parse_iso, utcnow
from .validation import optional_text, require_name, validate_entry_times

logger = logging.getLogger(__name__)


def finish_entry(db: Session, owner_id: str | None, entry_id: str, payload: dict[str, Any]) -> TimeEntry:
    """Complete a timer-started entry once its end time is known to follow its start."""

    entry = entries_crud.get_entry(db, owner_id, entry_id)
    if entry is None:
        raise NotFoundError(f"Time entry {entry_id} not found")
    end_time: datetime = payload["end_time"]
    validate_entry_times(parse_iso(entry.start_time), end_time)
    return entries_crud.complete_entry(db, owner_id, entry_id, payload)


async def start_session(db: Session, owner_id: str | None, timer: SessionTimer) -> TimerState:
    async with timer.lock:
        if timer.state.phase is not TimerPhase.IDLE:
            raise ConflictError("A timer session is already active")
        entry_id = generate_entry_id()
        await run_in_threadpool(entries_crud.create_entry, db, owner_id, entry_id, utcnow())
        timer.start(entry_id)
    logger.info("Timer session started", extra={"extra_data": {"entry_id": entry_id}})
    return timer.state


def stop_session(timer: SessionTimer) -> TimerState:
    if timer.state.phase is not TimerPhase.RUNNING:
        raise ConflictError("Timer is not running")
    return timer.stop()


async def submit_metadata(db: Session, owner_id: str | None, timer: SessionTimer, data: dict[str, Any]) -> TimeEntry:
    async with timer.lock:
        state = timer.state
        if state.phase is not TimerPhase.STOPPED or state.entry_id is None:
            raise ConflictError("Stop the timer before saving activity details")
        payload = {
            "name": require_name(data.get("name")),
            "description": optional_text(data.get("description")),
            "category": optional_text(data.get("category")),
            "end_time": utcnow(),
            "elapsed_time": state.elapsed_seconds,
        }
        entry = await run_in_threadpool(finish_entry, db, owner_id, state.entry_id, payload)
        timer.reset()
    logger.info(
        "Timer session completed",
        extra={"extra_data": {"entry_id": entry.entry_id, "elapsed_time": entry.elapsed_time}},
    )
    return entry


async def cancel_session(db: Session, owner_id: str | None, timer: SessionTimer) -> TimerState:
    """Drop the current session: discard its placeholder entry and reset the timer."""

    async with timer.lock:
        entry_id = timer.state.entry_id
        if entry_id is not None:
            try:
                await run_in_threadpool(entries_crud.delete_entry, db, owner_id, entry_id)
            except NotFoundError:
                logger.info("Placeholder entry %s already gone", entry_id)
        return timer.reset()
