"""Collection endpoints: shows, seasons and episodes."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status

from series_tracker.api.auth import get_current_user
from series_tracker.api.models import (
    AddSeasonRequest,
    CreateSeriesRequest,
    serialize_bootstrap,
    serialize_episode,
    serialize_overview,
    serialize_search_hit,
    serialize_season,
    serialize_series,
)
from series_tracker.domain.models import UserRecord
from series_tracker.domain.series import SeasonDraft
from series_tracker.services.errors import NotFoundError
from series_tracker.services.series import PRELOAD_DEFAULT_LIMIT

if TYPE_CHECKING:
    from series_tracker.containers import AppContainer

router = APIRouter(prefix="/api", tags=["series"])

SERIES_NOT_FOUND = "Series not found"
SEASON_NOT_FOUND = "Season not found"
EPISODE_NOT_FOUND = "Not found"


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _path_id(value: str, message: str) -> UUID:
    # a malformed id cannot name an existing row
    try:
        return UUID(value)
    except ValueError:
        raise NotFoundError(message) from None


@router.get("/series")
async def list_series(
    request: Request, user: UserRecord = Depends(get_current_user)
) -> list[dict[str, object]]:
    """Return the caller's shows with progress."""
    overview = _container(request).series_service.list_overview(user.id)
    return [serialize_overview(item) for item in overview]


@router.post("/series", status_code=status.HTTP_201_CREATED)
async def create_series(
    body: CreateSeriesRequest,
    request: Request,
    user: UserRecord = Depends(get_current_user),
) -> dict[str, object]:
    """Create a show manually with its seasons and episodes."""
    created = _container(request).series_service.create_series(
        user.id,
        body.title,
        [
            SeasonDraft(number=season.number, episodes_count=season.episodes_count)
            for season in body.seasons
        ],
    )
    return serialize_series(created)


@router.get("/series/in-progress-count")
async def in_progress_count(
    request: Request, user: UserRecord = Depends(get_current_user)
) -> dict[str, int]:
    """Return how many shows still have unwatched episodes."""
    count = _container(request).series_service.in_progress_count(user.id)
    return {"in_progress_count": count}


@router.get("/series/search")
async def search_series(
    request: Request, q: str = "", user: UserRecord = Depends(get_current_user)
) -> dict[str, object]:
    """Search the caller's shows by title."""
    hits = _container(request).series_service.search(user.id, q)
    items = [serialize_search_hit(series, seasons) for series, seasons in hits]
    return {"items": items}


@router.get("/series/{series_id}")
async def get_series(
    series_id: str, request: Request, user: UserRecord = Depends(get_current_user)
) -> dict[str, object]:
    """Return a single show."""
    series = _container(request).series_service.get_series(
        user.id, _path_id(series_id, SERIES_NOT_FOUND)
    )
    return serialize_series(series)


@router.delete("/series/{series_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_series(
    series_id: str, request: Request, user: UserRecord = Depends(get_current_user)
) -> Response:
    """Delete a show together with its seasons and episodes."""
    _container(request).series_service.delete_series(
        user.id, _path_id(series_id, SERIES_NOT_FOUND)
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/series/{series_id}/poster")
async def series_poster(
    series_id: str, request: Request, user: UserRecord = Depends(get_current_user)
) -> dict[str, str | None]:
    """Return the poster URL of a show."""
    poster_url = _container(request).series_service.get_poster(
        user.id, _path_id(series_id, SERIES_NOT_FOUND)
    )
    return {"poster_url": poster_url}


@router.get("/series/{series_id}/seasons")
async def list_seasons(
    series_id: str, request: Request, user: UserRecord = Depends(get_current_user)
) -> list[dict[str, object]]:
    """Return seasons of a show."""
    seasons = _container(request).series_service.list_seasons(
        user.id, _path_id(series_id, SERIES_NOT_FOUND)
    )
    return [serialize_season(season) for season in seasons]


@router.post("/series/{series_id}/seasons", status_code=status.HTTP_201_CREATED)
async def add_season(
    series_id: str,
    body: AddSeasonRequest,
    request: Request,
    user: UserRecord = Depends(get_current_user),
) -> dict[str, object]:
    """Append the next season to a show."""
    season = _container(request).series_service.add_season(
        user.id, _path_id(series_id, SERIES_NOT_FOUND), body.episodes_count
    )
    return serialize_season(season)


@router.get("/seasons/{season_id}/episodes")
async def list_episodes(
    season_id: str, request: Request, user: UserRecord = Depends(get_current_user)
) -> list[dict[str, object]]:
    """Return episodes of a season."""
    episodes = _container(request).series_service.list_episodes(
        user.id, _path_id(season_id, SEASON_NOT_FOUND)
    )
    return [serialize_episode(episode) for episode in episodes]


@router.post("/seasons/{season_id}/reset")
async def reset_season(
    season_id: str, request: Request, user: UserRecord = Depends(get_current_user)
) -> dict[str, bool]:
    """Recreate the season's episodes as unwatched."""
    _container(request).series_service.reset_season(
        user.id, _path_id(season_id, SEASON_NOT_FOUND)
    )
    return {"ok": True}


@router.patch("/episodes/{episode_id}")
async def toggle_episode(
    episode_id: str, request: Request, user: UserRecord = Depends(get_current_user)
) -> dict[str, object]:
    """Flip the watched flag of an episode."""
    episode = _container(request).series_service.toggle_episode(
        user.id, _path_id(episode_id, EPISODE_NOT_FOUND)
    )
    return {"id": str(episode.id), "watched": episode.watched}


@router.get("/bootstrap")
async def bootstrap(
    request: Request, user: UserRecord = Depends(get_current_user)
) -> dict[str, object]:
    """Return the collection with first-season episodes of every show."""
    return serialize_bootstrap(_container(request).series_service.bootstrap(user.id))


@router.get("/preload")
async def preload(
    request: Request,
    response: Response,
    limit: int = PRELOAD_DEFAULT_LIMIT,
    user: UserRecord = Depends(get_current_user),
) -> dict[str, object]:
    """Return the newest shows with every season and episode."""
    started = time.perf_counter()
    data = _container(request).series_service.preload(user.id, limit)
    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["Server-Timing"] = f"app;dur={elapsed_ms:.1f}"
    return serialize_bootstrap(data)
