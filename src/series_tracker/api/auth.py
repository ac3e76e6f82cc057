"""Telegram login endpoints and the current-user dependency."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response

from series_tracker.api.models import TelegramAuthRequest
from series_tracker.domain.models import UserRecord
from series_tracker.services.errors import UnauthorizedError, ValidationError

if TYPE_CHECKING:
    from series_tracker.containers import AppContainer

router = APIRouter(prefix="/api", tags=["auth"])


def get_current_user(request: Request) -> UserRecord:
    """Resolve the session cookie to a user or raise ``UnauthorizedError``."""
    container: AppContainer = request.app.state.container
    settings = container.settings
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        user = container.session_service.resolve(token)
        if user:
            return user
    if settings.allow_dev_user:
        return container.user_service.ensure_user(settings.dev_telegram_user_id)
    raise UnauthorizedError("Unauthorized")


@router.post("/auth/telegram")
async def telegram_auth(body: TelegramAuthRequest, request: Request) -> JSONResponse:
    """Verify launch data and set the session cookie."""
    container: AppContainer = request.app.state.container
    if not body.init_data:
        raise ValidationError("initData is required")

    issued = container.session_service.login(body.init_data)
    response = JSONResponse({"ok": True})
    settings = container.settings
    response.set_cookie(
        key=settings.session_cookie_name,
        value=issued.token,
        max_age=int(container.session_service.ttl.total_seconds()),
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(request: Request) -> Response:
    """Revoke the current session and clear the cookie."""
    container: AppContainer = request.app.state.container
    settings = container.settings
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        container.session_service.revoke(token)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response


@router.get("/me")
async def me(user: UserRecord = Depends(get_current_user)) -> dict[str, object]:
    """Return the caller's identity."""
    return {"name": None, "telegram_id": str(user.telegram_user_id)}
