"""Catalog search, detail and import endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from series_tracker.api.auth import get_current_user
from series_tracker.api.models import (
    ImportRequest,
    serialize_catalog_page,
    serialize_catalog_title,
    serialize_series,
)
from series_tracker.domain.models import UserRecord

if TYPE_CHECKING:
    from series_tracker.containers import AppContainer

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/catalog/search", dependencies=[Depends(get_current_user)])
async def catalog_search(
    request: Request, query: str = "", page: int = 1, limit: int = 20
) -> dict[str, object]:
    """Search the external catalog."""
    container: AppContainer = request.app.state.container
    result = await container.catalog_service.search(query, page=page, limit=limit)
    return serialize_catalog_page(result)


@router.get("/catalog/titles/{title_id}", dependencies=[Depends(get_current_user)])
async def catalog_title(title_id: int, request: Request) -> dict[str, object]:
    """Return a validated catalog title."""
    container: AppContainer = request.app.state.container
    title = await container.catalog_service.get_title(title_id)
    return serialize_catalog_title(title)


@router.post("/series/import")
async def import_series(
    body: ImportRequest,
    request: Request,
    user: UserRecord = Depends(get_current_user),
) -> dict[str, object]:
    """Import a catalog title into the caller's collection."""
    container: AppContainer = request.app.state.container
    result = await container.catalog_service.import_title(user.id, body.id)
    return {
        "series": serialize_series(result.series),
        "already_exists": result.already_exists,
    }
