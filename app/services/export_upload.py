"""Upload a CSV export to object storage and hand back its public URL.

This is the alternative to the direct download: the file lands under
``exports/<owner>/`` in the configured bucket and the caller gets a link it
can share or open later.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from ..core.config import settings
from ..core.errors import StorageError
from .timecalc import utcnow

logger = logging.getLogger(__name__)


class ExportStorageNotConfigured(Exception):
    """Raised when no storage endpoint/bucket is configured."""


def _ensure_configured() -> None:
    if not settings.storage_configured:
        raise ExportStorageNotConfigured("CSV upload storage is not configured")


def upload_object_path(owner_id: str, now: datetime | None = None) -> str:
    moment = now or utcnow()
    utc = moment.astimezone(timezone.utc)
    stamp = utc.strftime("%Y-%m-%dT%H-%M-%S-") + f"{utc.microsecond // 1000:03d}Z"
    return f"exports/{owner_id}/time-entries-export-{stamp}.csv"


def public_url(object_path: str) -> str:
    base = settings.STORAGE_URL.rstrip("/")
    return f"{base}/storage/v1/object/public/{settings.STORAGE_BUCKET}/{object_path}"


def _raise_for_status(response: httpx.Response, context: str) -> None:
    if response.status_code in {401, 403}:
        logger.warning("Storage authentication failed for %s", context)
    elif response.status_code >= 500:
        logger.error("Storage service error %s during %s", response.status_code, context)
    elif response.status_code >= 400:
        logger.error("Storage request error %s during %s", response.status_code, context)
    response.raise_for_status()


async def upload_csv_export(
    owner_id: str,
    csv_text: str,
    *,
    client: httpx.AsyncClient | None = None,
    now: datetime | None = None,
) -> str:
    """Upload ``csv_text`` and return the public retrieval URL."""

    _ensure_configured()
    object_path = upload_object_path(owner_id, now)
    base = settings.STORAGE_URL.rstrip("/")
    url = f"{base}/storage/v1/object/{settings.STORAGE_BUCKET}/{object_path}"
    headers = {
        "Content-Type": "text/csv;charset=utf-8",
        "Cache-Control": "max-age=3600",
        "x-upsert": "false",
    }
    if settings.STORAGE_KEY:
        headers["Authorization"] = f"Bearer {settings.STORAGE_KEY}"
        headers["apikey"] = settings.STORAGE_KEY

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=httpx.Timeout(settings.STORAGE_TIMEOUT_SECONDS))
    try:
        response = await http.post(url, content=csv_text.encode("utf-8"), headers=headers)
        _raise_for_status(response, "CSV upload")
    except httpx.HTTPError as exc:
        raise StorageError(f"Failed to upload CSV file: {exc}") from exc
    finally:
        if owns_client:
            await http.aclose()

    logger.info("CSV export uploaded", extra={"extra_data": {"path": object_path}})
    return public_url(object_path)
