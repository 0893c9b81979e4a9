from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

LOCAL_FORMAT = "%Y-%m-%d %H:%M:%S"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """Serialise an instant as UTC ISO-8601 with microseconds (sortable as text)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_iso(ts: Any, tz: str = "UTC") -> datetime | None:
    """Parse an ISO-8601 timestamp string.
    If naive, attach the provided tz. Returns None if ts is falsy or unparseable.
    """
    if isinstance(ts, datetime):
        dt = ts
    elif isinstance(ts, str) and ts:
        try:
            dt = datetime.fromisoformat(ts.replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(tz))
    return dt


def format_local(value: Any, tz: str, fmt: str = LOCAL_FORMAT) -> str:
    """Render an instant in the configured local zone; empty string when absent."""
    dt = parse_iso(value, tz)
    if not dt:
        return ""
    return dt.astimezone(ZoneInfo(tz)).strftime(fmt)


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Return whole seconds between start and end, floored like the live timer."""
    return (end - start) // timedelta(seconds=1)
