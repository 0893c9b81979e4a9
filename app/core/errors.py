from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException


class TrackerError(Exception):
    """Base class for errors surfaced to API clients as an inline message."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "tracker_error"

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class AuthRequiredError(TrackerError):
    """A persistence call was attempted without a resolved current user."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "auth_required"


class EntryValidationError(TrackerError, ValueError):
    """Client-side validation failed; nothing was sent to storage."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"


class NotFoundError(TrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(TrackerError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class StorageError(TrackerError):
    """Backend/transport failure, wrapped with the attempted operation."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "storage_error"


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def tracker_exception_handler(request: Request, exc: TrackerError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthRequiredError) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc):  # type: ignore[override]
    from fastapi.exceptions import RequestValidationError

    if isinstance(exc, RequestValidationError):
        return ErrorEnvelope(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": jsonable_errors(exc.errors())},
        )
    raise exc


def jsonable_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Strip non-serialisable context (e.g. exception instances) from pydantic errors."""

    cleaned: list[dict[str, Any]] = []
    for error in errors:
        item = {k: v for k, v in error.items() if k not in {"ctx", "input", "url"}}
        cleaned.append(item)
    return cleaned


__all__ = [
    "AuthRequiredError",
    "ConflictError",
    "EntryValidationError",
    "ErrorEnvelope",
    "NotFoundError",
    "StorageError",
    "TrackerError",
    "http_exception_handler",
    "tracker_exception_handler",
    "validation_exception_handler",
]
