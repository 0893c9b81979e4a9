"""Pydantic schemas that describe category payloads for the Settings tab."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


# Name length is checked by services.validation so the error reads the same
# for API and direct callers.
class CategoryCreate(BaseModel):
    name: str
    color: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    created_at: str
    updated_at: str

    model_config = ConfigDict(from_attributes=True)
