"""Timer tab: start, stop, then submit details or cancel.

These handlers are ``async`` because the timer schedules its tick task on the
running event loop. Storage work is pushed to the threadpool by
``services.tracking``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps import CurrentUser, get_timer, require_user
from ..schemas.entry import EntryOut, MetadataSubmit
from ..schemas.timer import TimerOut
from ..services import tracking
from ..services.timer import SessionTimer

router = APIRouter(prefix="/api/v1/timer", tags=["timer"])


@router.get("", response_model=TimerOut)
async def api_timer_state(timer: SessionTimer = Depends(get_timer)):
    return TimerOut.from_state(timer.state)


@router.post("/start", response_model=TimerOut, status_code=201)
async def api_start_timer(
    user: CurrentUser = Depends(require_user),
    timer: SessionTimer = Depends(get_timer),
    db: Session = Depends(get_db),
):
    return TimerOut.from_state(await tracking.start_session(db, user.id, timer))


@router.post("/stop", response_model=TimerOut)
async def api_stop_timer(timer: SessionTimer = Depends(get_timer)):
    return TimerOut.from_state(tracking.stop_session(timer))


@router.post("/submit", response_model=EntryOut)
async def api_submit_metadata(
    payload: MetadataSubmit,
    user: CurrentUser = Depends(require_user),
    timer: SessionTimer = Depends(get_timer),
    db: Session = Depends(get_db),
):
    entry = await tracking.submit_metadata(db, user.id, timer, payload.model_dump())
    return EntryOut.from_entry(entry)


@router.post("/cancel", response_model=TimerOut)
async def api_cancel_timer(
    user: CurrentUser = Depends(require_user),
    timer: SessionTimer = Depends(get_timer),
    db: Session = Depends(get_db),
):
    return TimerOut.from_state(await tracking.cancel_session(db, user.id, timer))
