"""Activities tab: list, manual entry, edit, delete, samples and CSV export."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import NotFoundError
from ..crud import entries as entries_crud
from ..db.session import get_db, get_session_factory
from ..deps import CurrentUser, require_user
from ..schemas.entry import EntryCreate, EntryOut, EntryUpdate, ExportLinkOut, SampleBatchRequest
from ..services import activities
from ..services.csv_export import CSV_MEDIA_TYPE, export_filename, format_entries_csv
from ..services.export_upload import ExportStorageNotConfigured, upload_csv_export
from ..services.samples import create_sample_entries

router = APIRouter(prefix="/api/v1/entries", tags=["entries"])


@router.get("", response_model=list[EntryOut])
def api_list_entries(
    limit: int | None = Query(default=None, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    records = entries_crud.list_entries(db, user.id, limit=limit, offset=offset)
    return [EntryOut.from_entry(record) for record in records]


@router.post("", response_model=EntryOut, status_code=201)
def api_create_entry(
    payload: EntryCreate,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    entry = activities.create_manual_activity(db, user.id, payload.model_dump())
    return EntryOut.from_entry(entry)


@router.post("/samples", response_model=list[EntryOut], status_code=201)
def api_create_samples(
    payload: SampleBatchRequest | None = None,
    user: CurrentUser = Depends(require_user),
    session_factory=Depends(get_session_factory),
):
    count = payload.count if payload else settings.SAMPLE_BATCH_SIZE
    created = create_sample_entries(
        session_factory,
        user.id,
        count,
        max_workers=settings.SAMPLE_BATCH_WORKERS,
    )
    return [EntryOut.from_entry(entry) for entry in created]


@router.get("/export.csv")
def api_export_csv(user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    records = entries_crud.list_entries(db, user.id)
    if not records:
        raise HTTPException(status_code=404, detail="No activities to export")
    body = format_entries_csv(records, tz=settings.TZ)
    return PlainTextResponse(
        body,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post("/export", response_model=ExportLinkOut, status_code=201)
async def api_export_upload(user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    records = await run_in_threadpool(entries_crud.list_entries, db, user.id)
    if not records:
        raise HTTPException(status_code=404, detail="No activities to export")
    body = format_entries_csv(records, tz=settings.TZ)
    try:
        url = await upload_csv_export(user.id, body)
    except ExportStorageNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return ExportLinkOut(url=url, entry_count=len(records))


@router.get("/{entry_id}", response_model=EntryOut)
def api_get_entry(entry_id: str, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    entry = entries_crud.get_entry(db, user.id, entry_id)
    if entry is None:
        raise NotFoundError(f"Time entry {entry_id} not found")
    return EntryOut.from_entry(entry)


@router.patch("/{entry_id}", response_model=EntryOut)
def api_update_entry(
    entry_id: str,
    payload: EntryUpdate,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    entry = activities.update_activity(db, user.id, entry_id, payload.model_dump(exclude_unset=True))
    return EntryOut.from_entry(entry)


@router.delete("/{entry_id}", status_code=204)
def api_delete_entry(entry_id: str, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    activities.delete_activity(db, user.id, entry_id)
    return Response(status_code=204)
