import os
import sys
from pathlib import Path

from sqlalchemy import create_engine, inspect, text

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from app.db.migrate import run_migrations


def test_old_store_gains_columns_and_drops_unowned_rows(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'old.db'}")
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE time_entries ("
                "id INTEGER PRIMARY KEY, entry_id TEXT NOT NULL, name TEXT NOT NULL, "
                "start_time TEXT NOT NULL, end_time TEXT, created_at TEXT NOT NULL)"
            )
        )
        conn.execute(
            text(
                "INSERT INTO time_entries (entry_id, name, start_time, created_at) "
                "VALUES ('entry_1', 'Legacy', '2024-01-01T09:00:00+00:00', '2024-01-01T09:00:00+00:00')"
            )
        )
        conn.execute(text("CREATE TABLE categories (id INTEGER PRIMARY KEY, user_id TEXT, name TEXT)"))

    run_migrations(engine)
    # Running twice is harmless
    run_migrations(engine)

    inspector = inspect(engine)
    columns = {col["name"] for col in inspector.get_columns("time_entries")}
    assert {"description", "category", "elapsed_time", "user_id", "updated_at"} <= columns
    assert "color" in {col["name"] for col in inspector.get_columns("categories")}
    index_names = {ix["name"] for ix in inspector.get_indexes("time_entries")}
    assert "ix_time_entries_entry_id" in index_names

    with engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM time_entries")).scalar() == 0


def test_fresh_store_is_left_to_create_all(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
    run_migrations(engine)
    assert inspect(engine).get_table_names() == []
