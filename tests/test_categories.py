import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from app.db.session import Base
from app.core.errors import ConflictError, EntryValidationError, NotFoundError
from app.crud import categories as categories_crud
from app.services.categories import add_category, edit_category

# Ensure models are registered so metadata tables are created
from app.models import category as category_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.mark.parametrize("name", ["", "   ", "x" * 51])
def test_category_name_length_is_enforced(db_session, name):
    with pytest.raises(EntryValidationError):
        add_category(db_session, "alice", {"name": name})
    assert categories_crud.list_categories(db_session, "alice") == []


@pytest.mark.parametrize("name", ["x", "x" * 50])
def test_category_name_length_bounds_are_inclusive(db_session, name):
    category = add_category(db_session, "alice", {"name": name})
    assert category.name == name


def test_category_names_are_trimmed_and_listed_alphabetically(db_session):
    add_category(db_session, "alice", {"name": "  Reading  ", "color": "#3B82F6"})
    add_category(db_session, "alice", {"name": "Art"})

    names = [c.name for c in categories_crud.list_categories(db_session, "alice")]
    assert names == ["Art", "Reading"]


def test_duplicate_names_conflict_per_owner(db_session):
    add_category(db_session, "alice", {"name": "Art"})
    with pytest.raises(ConflictError):
        add_category(db_session, "alice", {"name": "Art"})

    # Same name under another owner is fine
    add_category(db_session, "bob", {"name": "Art"})


def test_rename_checks_other_categories_only(db_session):
    art = add_category(db_session, "alice", {"name": "Art"})
    add_category(db_session, "alice", {"name": "Music"})

    with pytest.raises(ConflictError):
        edit_category(db_session, "alice", art.id, {"name": "Music"})

    unchanged = edit_category(db_session, "alice", art.id, {"name": "Art", "color": "#10B981"})
    assert unchanged.color == "#10B981"

    with pytest.raises(EntryValidationError):
        edit_category(db_session, "alice", art.id, {"name": ""})


def test_categories_are_scoped_and_deletable(db_session):
    art = add_category(db_session, "alice", {"name": "Art"})
    assert categories_crud.get_category(db_session, "bob", art.id) is None
    with pytest.raises(NotFoundError):
        categories_crud.delete_category(db_session, "bob", art.id)

    categories_crud.delete_category(db_session, "alice", art.id)
    assert categories_crud.list_categories(db_session, "alice") == []
    with pytest.raises(NotFoundError):
        edit_category(db_session, "alice", art.id, {"color": "#000000"})
