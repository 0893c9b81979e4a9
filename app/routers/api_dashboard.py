from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.config import settings
from ..crud.categories import list_categories
from ..crud.entries import list_entries
from ..db.session import get_db
from ..deps import CurrentUser, require_user
from ..schemas.entry import EntryOut
from ..services.stats import goal_progress, summarize, weekly_summary
from ..services.timecalc import utcnow

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


@router.get("")
def api_dashboard(user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    entries = list_entries(db, user.id)
    categories = list_categories(db, user.id)
    summary = summarize(entries)
    summary["recent"] = [EntryOut.from_entry(entry) for entry in summary["recent"]]
    weekly = weekly_summary(entries, categories, utcnow(), settings.TZ)
    return {
        "summary": summary,
        "weekly": weekly,
        "goal": goal_progress(weekly["this_week"]["total_seconds"], settings.WEEKLY_GOAL_HOURS),
    }
