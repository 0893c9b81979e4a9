"""SQLAlchemy engine and session helpers for the time entry store."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from ..core.config import settings

# For SQLite, ensure ``check_same_thread=False`` so the connection can be shared
# by FastAPI worker threads and the sample batch workers.
CONNECT_ARGS = {"check_same_thread": False} if settings.DB_URL.startswith("sqlite") else {}

engine = create_engine(settings.DB_URL, connect_args=CONNECT_ARGS)
# ``SessionLocal`` builds one session per request (or per batch worker).
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """FastAPI dependency for code that opens its own sessions (batch inserts)."""

    return SessionLocal
