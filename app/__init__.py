"""Application factory and top-level wiring for the Hobby Time Tracker API.

This module brings together configuration, database setup, the per-user timer
registry, API routers and error handling. The four router groups mirror the
tabs of the tracker: Timer, Activities, Dashboard and Settings.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    TrackerError,
    http_exception_handler,
    tracker_exception_handler,
    validation_exception_handler,
)
from .db.session import Base, engine
from .db.migrate import run_migrations
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .services.timer import TimerRegistry

# Importing the SQLAlchemy models registers them with the metadata. Without
# this step ``Base.metadata.create_all`` would not know about our tables.
from .models import category as _category  # noqa: F401
from .models import entry as _entry  # noqa: F401


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Teardown: no timer may keep ticking once the app is gone.
    app.state.timers.shutdown()


# ---------- App init ----------
app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
# Timer state lives only in memory; a restart starts every user at idle.
app.state.timers = TimerRegistry(interval=settings.TIMER_TICK_SECONDS)

# ---------- DB init/migrations ----------
# ``run_migrations`` upgrades stores written by older builds before
# ``create_all`` fills in anything that is missing.
run_migrations(engine)
Base.metadata.create_all(bind=engine)

# ---------- Middleware ----------
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)
if settings.ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# ---------- Routers ----------
from .routers import api_auth as api_auth_router  # type: ignore

app.include_router(api_auth_router.router)

from .routers import api_timer as api_timer_router  # type: ignore

app.include_router(api_timer_router.router)

from .routers import api_entries as api_entries_router  # type: ignore

app.include_router(api_entries_router.router)

from .routers import api_dashboard as api_dashboard_router  # type: ignore

app.include_router(api_dashboard_router.router)

from .routers import api_categories as api_categories_router  # type: ignore

app.include_router(api_categories_router.router)

# ---------- Exception handling ----------
# Every failure reaches the client as the same envelope so the UI can show an
# inline message and let the user retry.
app.add_exception_handler(TrackerError, tracker_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


__all__ = ["app"]
