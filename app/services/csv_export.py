"""Flat CSV rendering of time entries.

The output is meant to open cleanly in spreadsheet tools: a fixed header row,
one line per entry in the order given, ``\\n`` between rows and standard CSV
quoting for values that contain a comma, a double quote or a newline.
Formatting is side-effect free; delivery (download response or storage
upload) lives with the callers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from .durations import format_duration
from .timecalc import format_local, utcnow

CSV_HEADERS = (
    "Name",
    "Description",
    "Category",
    "Start Time",
    "End Time",
    "Duration (seconds)",
    "Duration (formatted)",
    "Created At",
    "Entry ID",
)
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
_SPECIAL_CHARS = (",", '"', "\n")


def escape_csv_value(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    if any(char in text for char in _SPECIAL_CHARS):
        return '"' + text.replace('"', '""') + '"'
    return text


def _entry_row(entry: Any, tz: str) -> list[str]:
    elapsed = getattr(entry, "elapsed_time", None)
    values = [
        entry.name,
        entry.description or "",
        entry.category or "",
        format_local(entry.start_time, tz),
        format_local(entry.end_time, tz),
        str(elapsed) if elapsed else "0",
        format_duration(elapsed),
        format_local(entry.created_at, tz),
        entry.entry_id,
    ]
    return [escape_csv_value(value) for value in values]


def format_entries_csv(entries: Iterable[Any], tz: str = "UTC") -> str:
    lines = [",".join(CSV_HEADERS)]
    lines.extend(",".join(_entry_row(entry, tz)) for entry in entries)
    return "\n".join(lines)


def export_filename(now: datetime | None = None) -> str:
    moment = now or utcnow()
    return f"time-entries-export-{moment.strftime('%Y-%m-%d')}.csv"


__all__ = [
    "CSV_HEADERS",
    "CSV_MEDIA_TYPE",
    "escape_csv_value",
    "export_filename",
    "format_entries_csv",
]
