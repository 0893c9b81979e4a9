from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

API_PREFIX = "/api/"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Baseline headers for a JSON-only API.

    Timer state and activity data are per-user and change every second, so API
    responses are never cached by browsers or proxies.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        headers = response.headers
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("Referrer-Policy", "no-referrer")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        if request.url.path.startswith(API_PREFIX):
            headers.setdefault("Cache-Control", "no-store")
        return response
