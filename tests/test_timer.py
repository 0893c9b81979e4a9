"""Start/stop timer state machine and its tick task."""

import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from app.core.errors import ConflictError
from app.schemas.timer import TimerOut
from app.services.timer import IDLE_STATE, SessionTimer, TimerPhase, TimerRegistry, TimerState

TICK = 0.01


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def test_stop_right_after_start_freezes_at_zero():
    async def scenario():
        timer = SessionTimer(interval=TICK, clock=FakeClock())
        handle = timer.start("entry_1")
        assert handle.active
        assert timer.state.phase is TimerPhase.RUNNING

        state = timer.stop()
        assert state.phase is TimerPhase.STOPPED
        assert state.elapsed_seconds == 0
        assert state.entry_id == "entry_1"
        assert not handle.active
        assert not timer.ticking

    asyncio.run(scenario())


def test_ticks_recompute_elapsed_from_clock():
    async def scenario():
        clock = FakeClock()
        timer = SessionTimer(interval=TICK, clock=clock)
        timer.start("entry_1")
        clock.advance(5.5)
        await asyncio.sleep(TICK * 5)
        assert timer.state.elapsed_seconds == 5
        timer.reset()

    asyncio.run(scenario())


def test_no_ticks_after_stop():
    async def scenario():
        clock = FakeClock()
        timer = SessionTimer(interval=TICK, clock=clock)
        timer.start("entry_1")
        clock.advance(3)
        timer.tick()
        timer.stop()

        clock.advance(60)
        await asyncio.sleep(TICK * 5)
        assert timer.state.elapsed_seconds == 3
        assert timer.state.phase is TimerPhase.STOPPED

    asyncio.run(scenario())


def test_reset_returns_to_idle():
    async def scenario():
        timer = SessionTimer(interval=TICK, clock=FakeClock())
        timer.start("entry_1")
        timer.stop()
        assert timer.reset() == IDLE_STATE
        assert timer.state.phase is TimerPhase.IDLE
        assert timer.state.entry_id is None

        # A fresh session can start once the timer is idle again
        timer.start("entry_2")
        assert timer.state.entry_id == "entry_2"
        timer.reset()

    asyncio.run(scenario())


def test_start_is_rejected_unless_idle():
    async def scenario():
        timer = SessionTimer(interval=TICK, clock=FakeClock())
        timer.start("entry_1")
        with pytest.raises(ConflictError):
            timer.start("entry_2")
        timer.stop()
        with pytest.raises(ConflictError):
            timer.start("entry_2")
        assert timer.state.entry_id == "entry_1"
        timer.reset()

    asyncio.run(scenario())


def test_stop_and_tick_are_noops_when_idle():
    timer = SessionTimer(interval=TICK, clock=FakeClock())
    assert timer.stop() == IDLE_STATE
    assert timer.tick() == IDLE_STATE


def test_start_needs_a_running_event_loop():
    timer = SessionTimer(interval=TICK, clock=FakeClock())
    with pytest.raises(RuntimeError):
        timer.start("entry_1")
    assert timer.state == IDLE_STATE


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        SessionTimer(interval=0)


def test_state_snapshots_are_immutable():
    async def scenario():
        clock = FakeClock()
        timer = SessionTimer(interval=TICK, clock=clock)
        timer.start("entry_1")
        before = timer.state
        clock.advance(2)
        timer.tick()
        assert before.elapsed_seconds == 0
        assert timer.state.elapsed_seconds == 2
        timer.reset()

    asyncio.run(scenario())


def test_registry_keeps_one_timer_per_owner_and_shuts_down():
    async def scenario():
        registry = TimerRegistry(interval=TICK, clock=FakeClock())
        alice = registry.get("alice")
        assert registry.get("alice") is alice
        assert registry.get("bob") is not alice

        handle = alice.start("entry_1")
        registry.shutdown()
        assert not handle.active
        assert alice.state == IDLE_STATE

    asyncio.run(scenario())


def test_timer_out_renders_clock_display():
    state = TimerState(
        is_running=True,
        elapsed_seconds=3725,
        start_time=datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        entry_id="entry_1",
    )
    payload = TimerOut.from_state(state)
    assert payload.display == "01:02:05"
    assert payload.phase == "running"
