"""Settings tab: per-user category taxonomy."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..crud import categories as categories_crud
from ..db.session import get_db
from ..deps import CurrentUser, require_user
from ..schemas.category import CategoryCreate, CategoryOut, CategoryUpdate
from ..services.categories import add_category, edit_category

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def api_list_categories(user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    return categories_crud.list_categories(db, user.id)


@router.post("", response_model=CategoryOut, status_code=201)
def api_create_category(
    payload: CategoryCreate,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    return add_category(db, user.id, payload.model_dump())


@router.get("/{category_id}", response_model=CategoryOut)
def api_get_category(category_id: int, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    category = categories_crud.get_category(db, user.id, category_id)
    if category is None:
        raise NotFoundError(f"Category {category_id} not found")
    return category


@router.patch("/{category_id}", response_model=CategoryOut)
def api_update_category(
    category_id: int,
    payload: CategoryUpdate,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    return edit_category(db, user.id, category_id, payload.model_dump(exclude_unset=True))


@router.delete("/{category_id}", status_code=204)
def api_delete_category(category_id: int, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    categories_crud.delete_category(db, user.id, category_id)
    return Response(status_code=204)
