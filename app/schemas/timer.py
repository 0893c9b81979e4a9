from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..services.durations import format_clock
from ..services.timer import TimerState


class TimerOut(BaseModel):
    phase: str
    is_running: bool
    elapsed_seconds: int
    display: str
    start_time: Optional[datetime] = None
    entry_id: Optional[str] = None

    @classmethod
    def from_state(cls, state: TimerState) -> "TimerOut":
        return cls(
            phase=state.phase.value,
            is_running=state.is_running,
            elapsed_seconds=state.elapsed_seconds,
            display=format_clock(state.elapsed_seconds),
            start_time=state.start_time,
            entry_id=state.entry_id,
        )
