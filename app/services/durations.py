"""Duration labels shared by the timer display, the dashboard and CSV export.

Two formatters exist and both decompose a count of seconds the same way:

* ``format_clock`` is the fixed-width ``HH:MM:SS`` readout used while a timer
  runs. Each field is zero-padded to two digits. The two-digit width of the
  hours field only holds below ``CLOCK_WIDTH_LIMIT_SECONDS`` (100 hours);
  longer durations are not truncated, the hours field simply gets wider.
* ``format_duration`` is the compact label (``2h 5m 10s``, ``5m 10s``,
  ``10s``) used in lists, statistics and the CSV ``Duration (formatted)``
  column.
"""

from __future__ import annotations

CLOCK_WIDTH_LIMIT_SECONDS = 100 * 3600


def split_seconds(total_seconds: int) -> tuple[int, int, int]:
    """Return ``(hours, minutes, seconds)`` for a non-negative second count."""

    if total_seconds < 0:
        raise ValueError("duration must be non-negative")
    hours, remainder = divmod(int(total_seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    return hours, minutes, seconds


def format_clock(total_seconds: int) -> str:
    hours, minutes, seconds = split_seconds(total_seconds)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_duration(total_seconds: int | None) -> str:
    if not total_seconds:
        return "0s"
    hours, minutes, seconds = split_seconds(total_seconds)
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


__all__ = [
    "CLOCK_WIDTH_LIMIT_SECONDS",
    "format_clock",
    "format_duration",
    "split_seconds",
]
