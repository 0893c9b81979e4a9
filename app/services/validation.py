"""Client-side checks run before any mutating storage call.

These are advisory: the store does not enforce them, so every caller that
creates or edits entries/categories goes through here first.
"""

from __future__ import annotations

from datetime import datetime

from ..core.errors import EntryValidationError

CATEGORY_NAME_MIN = 1
CATEGORY_NAME_MAX = 50


def require_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise EntryValidationError("Activity name is required")
    return cleaned


def validate_entry_times(start: datetime, end: datetime) -> None:
    if end <= start:
        raise EntryValidationError("End time must be after start time")


def validate_category_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not CATEGORY_NAME_MIN <= len(cleaned) <= CATEGORY_NAME_MAX:
        raise EntryValidationError(
            f"Category name must be between {CATEGORY_NAME_MIN} and {CATEGORY_NAME_MAX} characters"
        )
    return cleaned


def optional_text(value: str | None) -> str | None:
    """Normalise optional free text: blank strings are stored as ``None``."""

    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None
