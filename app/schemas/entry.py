"""Pydantic schemas for time entry payloads on the Activities and Timer tabs."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.config import settings
from ..services.durations import format_duration
from ..services.timecalc import parse_iso


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # Naive datetimes from form inputs are read in the configured local zone.
    if value is None:
        return None
    return parse_iso(value, settings.TZ)


class EntryCreate(BaseModel):
    name: str = Field(..., max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=50)
    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def localize_times(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)


class EntryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=50)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    elapsed_time: Optional[int] = Field(default=None, ge=0)

    @field_validator("start_time", "end_time")
    @classmethod
    def localize_times(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)


class MetadataSubmit(BaseModel):
    name: str = Field(..., max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=50)


class SampleBatchRequest(BaseModel):
    count: int = Field(default=10, ge=1, le=50)


class EntryOut(BaseModel):
    entry_id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    start_time: str
    end_time: Optional[str] = None
    elapsed_time: Optional[int] = None
    duration_formatted: str = "0s"
    in_progress: bool = False
    user_id: str
    created_at: str
    updated_at: str

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_entry(cls, entry) -> "EntryOut":
        payload = cls.model_validate(entry, from_attributes=True)
        payload.duration_formatted = format_duration(entry.elapsed_time)
        payload.in_progress = entry.end_time is None
        return payload


class ExportLinkOut(BaseModel):
    url: str
    entry_count: int
