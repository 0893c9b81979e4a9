from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..crud import categories as categories_crud
from ..models.category import Category
from .validation import optional_text, validate_category_name


def add_category(db: Session, owner_id: str | None, data: dict[str, Any]) -> Category:
    name = validate_category_name(data.get("name"))
    return categories_crud.create_category(db, owner_id, {"name": name, "color": optional_text(data.get("color"))})


def edit_category(db: Session, owner_id: str | None, category_id: int, data: dict[str, Any]) -> Category:
    changes: dict[str, Any] = {}
    if "name" in data:
        changes["name"] = validate_category_name(data["name"])
    if "color" in data:
        changes["color"] = optional_text(data["color"])
    return categories_crud.update_category(db, owner_id, category_id, changes)
