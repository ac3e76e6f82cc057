"""Pydantic request bodies and response serializers."""

from pydantic import AliasChoices, BaseModel, Field

from series_tracker.domain.catalog import CatalogSearchPage, CatalogTitle
from series_tracker.domain.series import (
    EpisodeRecord,
    ProgressSummary,
    SeasonRecord,
    SeriesRecord,
)
from series_tracker.services.series import Bootstrap, SeriesOverview


class TelegramAuthRequest(BaseModel):
    """Raw launch data forwarded by the Mini-App."""

    init_data: str | None = Field(
        default=None, validation_alias=AliasChoices("initData", "init_data")
    )


class SeasonInput(BaseModel):
    """Season declared when creating a show manually."""

    number: int
    episodes_count: int = Field(
        validation_alias=AliasChoices("episodesCount", "episodes_count")
    )


class CreateSeriesRequest(BaseModel):
    """Manual show creation payload."""

    title: str = ""
    seasons: list[SeasonInput] = Field(default_factory=list)


class AddSeasonRequest(BaseModel):
    """Season append payload."""

    episodes_count: int = Field(
        validation_alias=AliasChoices("episodesCount", "episodes_count")
    )


class ImportRequest(BaseModel):
    """Catalog import payload."""

    id: int


def serialize_series(series: SeriesRecord) -> dict[str, object]:
    """Return a show as its JSON shape."""
    return {
        "id": str(series.id),
        "title": series.title,
        "poster_url": series.poster_url,
        "year": series.year,
        "kind": series.kind,
        "source": series.source,
        "source_id": series.source_id,
        "created_at": series.created_at.isoformat() if series.created_at else None,
    }


def serialize_season(season: SeasonRecord) -> dict[str, object]:
    """Return a season as its JSON shape."""
    return {
        "id": str(season.id),
        "series_id": str(season.series_id),
        "number": season.number,
        "episodes_count": season.episodes_count,
    }


def serialize_episode(episode: EpisodeRecord) -> dict[str, object]:
    """Return an episode with its watched flag."""
    return {
        "id": str(episode.id),
        "number": episode.number,
        "watched": episode.watched,
    }


def serialize_progress(progress: ProgressSummary) -> dict[str, object]:
    """Return progress; ``last`` is null when nothing is watched."""
    return {
        "percent": progress.percent,
        "last": {"season": progress.last.season, "episode": progress.last.episode}
        if progress.last
        else None,
        "watched_episodes": progress.watched_episodes,
        "total_episodes": progress.total_episodes,
    }


def serialize_overview(overview: SeriesOverview) -> dict[str, object]:
    """Return a show with its counts and progress."""
    return {
        **serialize_series(overview.series),
        "seasons_count": overview.seasons_count,
        "episodes_count": overview.episodes_count,
        "progress": serialize_progress(overview.progress),
    }


def serialize_bootstrap(bootstrap: Bootstrap) -> dict[str, object]:
    """Return shows plus seasons and episodes keyed by parent id."""
    return {
        "series": [serialize_overview(item) for item in bootstrap.series],
        "seasons_by_series": {
            str(series_id): [serialize_season(season) for season in seasons]
            for series_id, seasons in bootstrap.seasons_by_series.items()
        },
        "episodes_by_season": {
            str(season_id): [serialize_episode(episode) for episode in episodes]
            for season_id, episodes in bootstrap.episodes_by_season.items()
        },
    }


def serialize_search_hit(
    series: SeriesRecord, seasons: list[SeasonRecord]
) -> dict[str, object]:
    """Return a search result with season and episode totals."""
    return {
        "id": str(series.id),
        "title": series.title,
        "year": series.year,
        "poster_url": series.poster_url,
        "kind": series.kind or "series",
        "source": series.source,
        "source_id": series.source_id,
        "seasons_count": len(seasons),
        "episodes_count": sum(season.episodes_count for season in seasons),
    }


def serialize_catalog_title(title: CatalogTitle) -> dict[str, object]:
    """Return a catalog title; empty counts become null."""
    seasons = title.valid_seasons
    episodes_count = sum(season.episodes_count or 0 for season in seasons)
    return {
        "id": title.id,
        "name": title.display_name,
        "year": title.year,
        "poster_url": title.poster_url,
        "type": title.type,
        "seasons_count": len(seasons) or None,
        "episodes_count": episodes_count or None,
        "seasons_info": [
            {"number": season.number, "episodes_count": season.episodes_count}
            for season in seasons
        ],
    }


def serialize_catalog_page(page: CatalogSearchPage) -> dict[str, object]:
    """Return one page of catalog search results."""
    return {
        "items": [serialize_catalog_title(item) for item in page.items],
        "page": page.page,
        "limit": page.limit,
        "pages": page.pages,
        "total": page.total,
    }
