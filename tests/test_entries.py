"""Owner-scoped entry storage, manual entry validation and the timer session flow."""

import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from app.db.session import Base
from app.core.errors import AuthRequiredError, ConflictError, EntryValidationError, NotFoundError
from app.crud import entries as entries_crud
from app.models.entry import PLACEHOLDER_NAME
from app.services import activities, tracking
from app.services.timer import SessionTimer, TimerPhase

# Ensure models are registered so metadata tables are created
from app.models import entry as entry_model  # noqa: F401

START = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db_session():
    # Timer flows run storage calls on worker threads; they must all see one database.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def manual(db, owner, name="Sketching", minutes=90, **extra):
    data = {"name": name, "start_time": START, "end_time": START + timedelta(minutes=minutes)}
    data.update(extra)
    return activities.create_manual_activity(db, owner, data)


def test_storage_calls_require_an_owner(db_session):
    with pytest.raises(AuthRequiredError):
        entries_crud.list_entries(db_session, None)
    with pytest.raises(AuthRequiredError):
        entries_crud.create_entry(db_session, "", "entry_x", START)
    with pytest.raises(AuthRequiredError):
        activities.create_manual_activity(
            db_session,
            None,
            {"name": "Reading", "start_time": START, "end_time": START + timedelta(hours=1)},
        )


def test_timer_placeholder_and_single_in_progress_guard(db_session):
    entry = entries_crud.create_entry(db_session, "alice", "entry_1", START)
    assert entry.name == PLACEHOLDER_NAME
    assert entry.end_time is None
    assert entry.in_progress

    with pytest.raises(ConflictError):
        entries_crud.create_entry(db_session, "alice", "entry_2", START)

    # Another owner is unaffected
    entries_crud.create_entry(db_session, "bob", "entry_3", START)


def test_entries_are_scoped_to_their_owner(db_session):
    mine = manual(db_session, "alice")
    manual(db_session, "bob", name="Running")

    assert [e.entry_id for e in entries_crud.list_entries(db_session, "alice")] == [mine.entry_id]
    assert entries_crud.get_entry(db_session, "bob", mine.entry_id) is None
    with pytest.raises(NotFoundError):
        entries_crud.delete_entry(db_session, "bob", mine.entry_id)
    with pytest.raises(NotFoundError):
        activities.update_activity(db_session, "bob", mine.entry_id, {"name": "Hijacked"})


def test_list_entries_newest_first_with_paging(db_session):
    first = manual(db_session, "alice", name="First")
    second = manual(db_session, "alice", name="Second")
    third = manual(db_session, "alice", name="Third")

    ordered = entries_crud.list_entries(db_session, "alice")
    assert [e.entry_id for e in ordered] == [third.entry_id, second.entry_id, first.entry_id]
    page = entries_crud.list_entries(db_session, "alice", limit=1, offset=1)
    assert [e.entry_id for e in page] == [second.entry_id]


def test_manual_entry_computes_elapsed(db_session):
    entry = manual(db_session, "alice", description="  Charcoal  ", category="Art")
    assert entry.elapsed_time == 5400
    assert entry.description == "Charcoal"
    assert entry.category == "Art"
    assert entry.entry_id.startswith("entry_")


@pytest.mark.parametrize("minutes", [0, -30])
def test_manual_entry_rejects_bad_range_before_storage(db_session, monkeypatch, minutes):
    def fail(*args, **kwargs):
        raise AssertionError("storage must not be reached")

    monkeypatch.setattr(entries_crud, "create_manual_entry", fail)
    with pytest.raises(EntryValidationError, match="End time must be after start time"):
        manual(db_session, "alice", minutes=minutes)


def test_manual_entry_requires_a_name(db_session):
    with pytest.raises(EntryValidationError):
        manual(db_session, "alice", name="   ")
    assert entries_crud.list_entries(db_session, "alice") == []


def test_update_recomputes_elapsed_when_bounds_change(db_session):
    entry = manual(db_session, "alice")
    updated = activities.update_activity(
        db_session,
        "alice",
        entry.entry_id,
        {"end_time": START + timedelta(hours=2), "category": "Art"},
    )
    assert updated.elapsed_time == 7200
    assert updated.category == "Art"


def test_update_rejects_inverted_range_and_keeps_row(db_session):
    entry = manual(db_session, "alice")
    with pytest.raises(EntryValidationError):
        activities.update_activity(
            db_session,
            "alice",
            entry.entry_id,
            {"start_time": START + timedelta(hours=3)},
        )
    db_session.expire_all()
    assert entries_crud.get_entry(db_session, "alice", entry.entry_id).elapsed_time == 5400


def test_explicit_duration_needs_an_end_time(db_session):
    entries_crud.create_entry(db_session, "alice", "entry_open", START)
    with pytest.raises(EntryValidationError):
        activities.update_activity(db_session, "alice", "entry_open", {"elapsed_time": 60})

    entry = manual(db_session, "bob")
    updated = activities.update_activity(db_session, "bob", entry.entry_id, {"elapsed_time": 60})
    assert updated.elapsed_time == 60


def test_delete_activity_removes_row(db_session):
    entry = manual(db_session, "alice")
    activities.delete_activity(db_session, "alice", entry.entry_id)
    assert entries_crud.get_entry(db_session, "alice", entry.entry_id) is None


def test_in_progress_start_cannot_move_into_the_future(db_session):
    entries_crud.create_entry(db_session, "alice", "entry_open", START)
    later = datetime.now(timezone.utc) + timedelta(hours=2)

    with pytest.raises(EntryValidationError):
        activities.update_activity(db_session, "alice", "entry_open", {"start_time": later})
    db_session.expire_all()
    assert entries_crud.get_entry(db_session, "alice", "entry_open").start_time.startswith("2024-05-01T09:00:00")

    earlier = activities.update_activity(db_session, "alice", "entry_open", {"start_time": START - timedelta(hours=1)})
    assert earlier.start_time.startswith("2024-05-01T08:00:00")
    assert earlier.end_time is None


def test_timer_session_start_stop_submit(db_session):
    async def scenario():
        timer = SessionTimer(interval=0.01)
        state = await tracking.start_session(db_session, "alice", timer)
        assert state.phase is TimerPhase.RUNNING
        placeholder = entries_crud.get_entry(db_session, "alice", state.entry_id)
        assert placeholder.name == PLACEHOLDER_NAME

        with pytest.raises(ConflictError):
            await tracking.start_session(db_session, "alice", timer)

        stopped = tracking.stop_session(timer)
        assert stopped.phase is TimerPhase.STOPPED

        with pytest.raises(EntryValidationError):
            await tracking.submit_metadata(db_session, "alice", timer, {"name": ""})
        assert timer.state.phase is TimerPhase.STOPPED

        entry = await tracking.submit_metadata(
            db_session,
            "alice",
            timer,
            {"name": "Sketching", "category": "Art", "description": ""},
        )
        assert entry.entry_id == state.entry_id
        assert entry.name == "Sketching"
        assert entry.description is None
        assert entry.end_time > entry.start_time
        assert entry.elapsed_time == stopped.elapsed_seconds
        assert timer.state.phase is TimerPhase.IDLE

    asyncio.run(scenario())


def test_submit_refuses_an_end_before_the_stored_start(db_session):
    async def scenario():
        timer = SessionTimer(interval=0.01)
        state = await tracking.start_session(db_session, "alice", timer)
        # Push the stored start past "now", bypassing the edit checks.
        future = datetime.now(timezone.utc) + timedelta(hours=2)
        entries_crud.update_entry(db_session, "alice", state.entry_id, {"start_time": future})
        tracking.stop_session(timer)

        with pytest.raises(EntryValidationError, match="End time must be after start time"):
            await tracking.submit_metadata(db_session, "alice", timer, {"name": "Sketching"})

        assert timer.state.phase is TimerPhase.STOPPED
        db_session.expire_all()
        stored = entries_crud.get_entry(db_session, "alice", state.entry_id)
        assert stored.end_time is None
        assert stored.name == PLACEHOLDER_NAME

        # The session can still be discarded
        await tracking.cancel_session(db_session, "alice", timer)
        assert timer.state.phase is TimerPhase.IDLE

    asyncio.run(scenario())


def test_submit_and_stop_require_the_right_phase(db_session):
    timer = SessionTimer(interval=0.01)
    with pytest.raises(ConflictError):
        tracking.stop_session(timer)
    with pytest.raises(ConflictError):
        asyncio.run(tracking.submit_metadata(db_session, "alice", timer, {"name": "Reading"}))


def test_cancel_discards_placeholder(db_session):
    async def scenario():
        timer = SessionTimer(interval=0.01)
        state = await tracking.start_session(db_session, "alice", timer)
        tracking.stop_session(timer)
        cancelled = await tracking.cancel_session(db_session, "alice", timer)
        assert cancelled.phase is TimerPhase.IDLE
        assert entries_crud.get_entry(db_session, "alice", state.entry_id) is None

    asyncio.run(scenario())


def test_start_fails_without_moving_timer_when_entry_in_progress(db_session):
    entries_crud.create_entry(db_session, "alice", "entry_elsewhere", START)

    async def scenario():
        timer = SessionTimer(interval=0.01)
        with pytest.raises(ConflictError):
            await tracking.start_session(db_session, "alice", timer)
        assert timer.state.phase is TimerPhase.IDLE

    asyncio.run(scenario())
