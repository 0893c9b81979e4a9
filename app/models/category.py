"""SQLAlchemy model for user-defined activity categories."""

from __future__ import annotations

from sqlalchemy import Column, Integer, Text, UniqueConstraint

from ..db.session import Base


class Category(Base):
    __tablename__ = "categories"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    color = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_categories_user_name"),)


__all__ = ["Category"]
