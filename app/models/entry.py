"""SQLAlchemy model for tracked time sessions ("activities")."""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, Text

from ..db.session import Base

PLACEHOLDER_NAME = "Untitled Activity"


class TimeEntry(Base):
    """One tracked interval; in progress while ``end_time`` is empty.

    ``entry_id`` is generated by the caller and is the key every CRUD helper
    uses. ``category`` is stored as free text so deleting a category never
    rewrites entries.
    """

    __tablename__ = "time_entries"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    entry_id = Column(Text, nullable=False, unique=True, index=True)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False, default=PLACEHOLDER_NAME)
    description = Column(Text, nullable=True)
    category = Column(Text, nullable=True)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=True)
    elapsed_time = Column(Integer, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    __table_args__ = (Index("ix_time_entries_user_created", "user_id", "created_at"),)

    @property
    def in_progress(self) -> bool:
        return self.end_time is None


__all__ = ["PLACEHOLDER_NAME", "TimeEntry"]
