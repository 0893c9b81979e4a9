from __future__ import annotations

import hmac

from fastapi import Header, Request
from fastapi.security.utils import get_authorization_scheme_param

from ..core.config import settings
from ..core.errors import AuthRequiredError
from ..core.security import decode_token
from ..middlewares import principal_ctx_var


class CurrentUser:
    """The resolved owner identity every storage call is scoped to."""

    def __init__(self, *, id: str, scheme: str) -> None:
        self.id = id
        self.scheme = scheme


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def require_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> CurrentUser:
    """Resolve the current user from a bearer JWT, or an API key plus ``X-User-Id``."""

    if authorization:
        scheme, credentials = get_authorization_scheme_param(authorization)
        if scheme.lower() == "bearer" and credentials:
            try:
                payload = decode_token(credentials, verify_type="access")
            except ValueError as exc:
                raise AuthRequiredError(str(exc)) from exc
            _set_principal(request, f"jwt:{payload.sub}")
            request.state.token_payload = payload
            return CurrentUser(id=payload.sub, scheme="jwt")

    api_key = settings.API_KEY
    provided_key = (x_api_key or "").strip()
    if settings.AUTH_ALLOW_API_KEY and api_key and provided_key:
        if not hmac.compare_digest(api_key, provided_key):
            raise AuthRequiredError("Invalid API key")
        user_id = (x_user_id or "").strip()
        if not user_id:
            raise AuthRequiredError("X-User-Id header is required with an API key")
        _set_principal(request, f"api-key:{user_id}")
        return CurrentUser(id=user_id, scheme="api_key")

    raise AuthRequiredError("User must be authenticated")
