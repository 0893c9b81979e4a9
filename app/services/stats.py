from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Sequence
from zoneinfo import ZoneInfo

from .durations import format_duration
from .timecalc import parse_iso

UNCATEGORIZED = "Uncategorized"
DEFAULT_COLOR = "#6B7280"
RECENT_LIMIT = 5


def _seconds(entry: Any) -> int:
    return int(entry.elapsed_time or 0)


def summarize(entries: Sequence[Any]) -> Dict[str, Any]:
    """Headline numbers for the dashboard.

    ``entries`` is expected newest-first (the order ``list_entries`` returns),
    so the first five are the recent activity list.
    """

    total_seconds = sum(_seconds(entry) for entry in entries)
    count = len(entries)
    average = round(total_seconds / count) if count else 0

    breakdown: Dict[str, Dict[str, Any]] = {}
    for entry in entries:
        name = entry.category or UNCATEGORIZED
        row = breakdown.setdefault(name, {"category": name, "count": 0, "total_seconds": 0})
        row["count"] += 1
        row["total_seconds"] += _seconds(entry)
    categories = sorted(breakdown.values(), key=lambda row: row["total_seconds"], reverse=True)
    for row in categories:
        row["total_formatted"] = format_duration(row["total_seconds"])

    return {
        "total_entries": count,
        "completed_entries": sum(1 for entry in entries if entry.end_time),
        "total_seconds": total_seconds,
        "total_formatted": format_duration(total_seconds),
        "average_seconds": average,
        "average_formatted": format_duration(average),
        "categories": categories,
        "recent": list(entries[:RECENT_LIMIT]),
    }


def start_of_week(moment: datetime) -> datetime:
    """Midnight on the Monday of ``moment``'s week, in ``moment``'s zone."""

    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=midnight.weekday())


def _category_totals(entries: Iterable[Any], start: datetime, end: datetime, tz: str) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for entry in entries:
        if not entry.elapsed_time:
            continue
        started = parse_iso(entry.start_time or entry.created_at, tz)
        if started is None or not start <= started < end:
            continue
        name = entry.category or UNCATEGORIZED
        totals[name] = totals.get(name, 0) + _seconds(entry)
    return totals


def _week_rows(totals: Dict[str, int], ordered: list[tuple[str, str]]) -> Dict[str, Any]:
    rows = [{"category": name, "color": color, "total_seconds": totals.get(name, 0)} for name, color in ordered]
    # Entries may name a category that has since been deleted; keep their time visible.
    known = {name for name, _ in ordered}
    extra = [
        {"category": name, "color": DEFAULT_COLOR, "total_seconds": seconds}
        for name, seconds in sorted(totals.items())
        if name not in known
    ]
    fallback = [name for name, _ in ordered].index(UNCATEGORIZED)
    rows[fallback:fallback] = extra
    total = sum(row["total_seconds"] for row in rows)
    return {
        "categories": rows,
        "total_seconds": total,
        "total_formatted": format_duration(total),
        "average_daily_seconds": round(total / 7),
    }


def weekly_summary(entries: Sequence[Any], categories: Sequence[Any], now: datetime, tz: str) -> Dict[str, Any]:
    """This week vs last week, Monday-based, per category in a stable order."""

    local_now = now.astimezone(ZoneInfo(tz))
    this_week = start_of_week(local_now)
    next_week = this_week + timedelta(days=7)
    last_week = this_week - timedelta(days=7)

    ordered = [(c.name, c.color or DEFAULT_COLOR) for c in sorted(categories, key=lambda c: c.name)]
    # A user category may itself be called "Uncategorized"; it then doubles as the fallback row.
    if UNCATEGORIZED not in {name for name, _ in ordered}:
        ordered.append((UNCATEGORIZED, DEFAULT_COLOR))

    return {
        "week_start": this_week.date().isoformat(),
        "this_week": _week_rows(_category_totals(entries, this_week, next_week, tz), ordered),
        "last_week": _week_rows(_category_totals(entries, last_week, this_week, tz), ordered),
    }


def goal_progress(total_seconds: int, goal_hours: float) -> Dict[str, Any]:
    goal_seconds = max(1, round((goal_hours or 0) * 3600))
    percent = min(100.0, round(total_seconds / goal_seconds * 100, 1))
    return {
        "goal_seconds": goal_seconds,
        "goal_formatted": format_duration(goal_seconds),
        "tracked_seconds": total_seconds,
        "percent": percent,
        "met": total_seconds >= goal_seconds,
    }


__all__ = ["goal_progress", "start_of_week", "summarize", "weekly_summary"]
