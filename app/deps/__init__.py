"""Request dependencies: the authenticated owner and that owner's timer."""

from __future__ import annotations

from fastapi import Depends, Request

from ..services.timer import SessionTimer, TimerRegistry
from .auth import CurrentUser, require_user


def get_timer_registry(request: Request) -> TimerRegistry:
    return request.app.state.timers


def get_timer(
    user: CurrentUser = Depends(require_user),
    registry: TimerRegistry = Depends(get_timer_registry),
) -> SessionTimer:
    return registry.get(user.id)


__all__ = ["CurrentUser", "get_timer", "get_timer_registry", "require_user"]
