"""In-memory start/stop timer with a cancellable once-per-second recomputation.

The timer moves through three phases::

    idle --start--> running --stop--> stopped_pending_metadata --reset--> idle

``SessionTimer`` is the only writer of its ``TimerState``. Every transition
swaps in a new frozen snapshot, so readers (the API layer, the dashboard) can
hold on to ``timer.state`` without seeing it change underneath them.

While running, an ``asyncio`` task recomputes ``elapsed_seconds`` from the
wall clock every ``interval`` seconds. ``stop`` and ``reset`` cancel that task
before returning, so a stopped timer never ticks again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict

from ..core.errors import ConflictError
from .timecalc import utcnow

logger = logging.getLogger(__name__)


class TimerPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped_pending_metadata"


@dataclass(frozen=True)
class TimerState:
    is_running: bool = False
    elapsed_seconds: int = 0
    start_time: datetime | None = None
    entry_id: str | None = None

    @property
    def phase(self) -> TimerPhase:
        if self.is_running:
            return TimerPhase.RUNNING
        if self.entry_id is not None:
            return TimerPhase.STOPPED
        return TimerPhase.IDLE


IDLE_STATE = TimerState()


class TickHandle:
    """Handle on the periodic recomputation task returned by ``SessionTimer.start``."""

    def __init__(self, task: asyncio.Task) -> None:
        self._task = task
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        if not self._task.done():
            self._task.cancel()

    @property
    def active(self) -> bool:
        return not self._cancelled and not self._task.done()


class SessionTimer:
    def __init__(self, *, interval: float = 1.0, clock: Callable[[], datetime] = utcnow) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._clock = clock
        self._state = IDLE_STATE
        self._handle: TickHandle | None = None
        # Held by callers that pair a transition with a storage write.
        self.lock = asyncio.Lock()

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def ticking(self) -> bool:
        return self._handle is not None and self._handle.active

    def start(self, entry_id: str) -> TickHandle:
        """Enter ``running`` and schedule the tick task on the running event loop."""

        if self._state.phase is not TimerPhase.IDLE:
            raise ConflictError(f"Timer is {self._state.phase.value}; finish or cancel the current session first")
        loop = asyncio.get_running_loop()
        self._state = TimerState(
            is_running=True,
            elapsed_seconds=0,
            start_time=self._clock(),
            entry_id=entry_id,
        )
        handle = TickHandle(loop.create_task(self._run()))
        self._handle = handle
        logger.debug("Timer started for %s", entry_id)
        return handle

    def tick(self) -> TimerState:
        state = self._state
        if not state.is_running or state.start_time is None:
            return state
        elapsed = (self._clock() - state.start_time) // timedelta(seconds=1)
        self._state = replace(state, elapsed_seconds=max(elapsed, 0))
        return self._state

    def stop(self) -> TimerState:
        """Freeze the timer for the metadata step. No-op unless running."""

        if not self._state.is_running:
            return self._state
        self._cancel_ticks()
        self._state = replace(self._state, is_running=False)
        return self._state

    def reset(self) -> TimerState:
        self._cancel_ticks()
        self._state = IDLE_STATE
        return self._state

    def _cancel_ticks(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.tick()


class TimerRegistry:
    """One timer per owner, held only for the lifetime of the process."""

    def __init__(self, *, interval: float = 1.0, clock: Callable[[], datetime] = utcnow) -> None:
        self.interval = interval
        self._clock = clock
        self._timers: Dict[str, SessionTimer] = {}

    def get(self, owner_id: str) -> SessionTimer:
        timer = self._timers.get(owner_id)
        if timer is None:
            timer = SessionTimer(interval=self.interval, clock=self._clock)
            self._timers[owner_id] = timer
        return timer

    def shutdown(self) -> None:
        for timer in self._timers.values():
            timer.reset()
        self._timers.clear()


__all__ = [
    "IDLE_STATE",
    "SessionTimer",
    "TickHandle",
    "TimerPhase",
    "TimerRegistry",
    "TimerState",
]
