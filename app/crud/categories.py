"""Owner-scoped CRUD helpers for categories (the Settings tab)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import ConflictError, NotFoundError
from ..models.category import Category
from ..services.timecalc import to_iso, utcnow
from .entries import require_owner, storage_errors


def list_categories(db: Session, owner_id: str | None) -> list[Category]:
    owner = require_owner(owner_id, "access categories")
    stmt = select(Category).where(Category.user_id == owner).order_by(Category.name)
    with storage_errors(db, "fetch categories"):
        return list(db.execute(stmt).scalars().all())


def get_category(db: Session, owner_id: str | None, category_id: int) -> Category | None:
    owner = require_owner(owner_id, "access categories")
    stmt = select(Category).where(Category.id == category_id, Category.user_id == owner)
    with storage_errors(db, "fetch category"):
        return db.execute(stmt).scalars().first()


def category_exists(db: Session, owner_id: str | None, name: str, *, exclude_id: int | None = None) -> bool:
    owner = require_owner(owner_id, "check categories")
    stmt = select(Category.id).where(Category.user_id == owner, Category.name == name.strip())
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    with storage_errors(db, "check categories"):
        return db.execute(stmt.limit(1)).first() is not None


def create_category(db: Session, owner_id: str | None, payload: dict) -> Category:
    owner = require_owner(owner_id, "create categories")
    name = payload["name"].strip()
    if category_exists(db, owner, name):
        raise ConflictError(f'Category "{name}" already exists')
    now = to_iso(utcnow())
    category = Category(
        user_id=owner,
        name=name,
        color=payload.get("color") or None,
        created_at=now,
        updated_at=now,
    )
    with storage_errors(db, "create category"):
        db.add(category)
        db.commit()
        db.refresh(category)
    return category


def update_category(db: Session, owner_id: str | None, category_id: int, payload: dict) -> Category:
    owner = require_owner(owner_id, "update categories")
    category = get_category(db, owner, category_id)
    if category is None:
        raise NotFoundError(f"Category {category_id} not found")
    if "name" in payload and payload["name"] is not None:
        name = payload["name"].strip()
        if category_exists(db, owner, name, exclude_id=category.id):
            raise ConflictError(f'Category "{name}" already exists')
        category.name = name
    if "color" in payload:
        category.color = payload.get("color") or None
    category.updated_at = to_iso(utcnow())
    with storage_errors(db, "update category"):
        db.commit()
        db.refresh(category)
    return category


def delete_category(db: Session, owner_id: str | None, category_id: int) -> None:
    # Entries keep the category name as plain text, so nothing cascades.
    owner = require_owner(owner_id, "delete categories")
    category = get_category(db, owner, category_id)
    if category is None:
        raise NotFoundError(f"Category {category_id} not found")
    with storage_errors(db, "delete category"):
        db.delete(category)
        db.commit()
