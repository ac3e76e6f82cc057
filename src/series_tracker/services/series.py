"""Series collection management."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from series_tracker.domain.series import (
    EpisodeRecord,
    ProgressSummary,
    SeasonDraft,
    SeasonRecord,
    SeriesDraft,
    SeriesRecord,
    SeriesSnapshot,
)
from series_tracker.services.errors import NotFoundError, ValidationError
from series_tracker.services.progress import count_in_progress, snapshot_progress

logger = logging.getLogger(__name__)

MAX_MANUAL_EPISODES = 200
MAX_SEASON_EPISODES = 500
SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 20
PRELOAD_DEFAULT_LIMIT = 3
PRELOAD_MAX_LIMIT = 10


class SeriesRepository(Protocol):
    """Persistence interface for shows, seasons and episodes."""

    def list_snapshots(
        self, user_id: UUID, limit: int | None = None
    ) -> list[SeriesSnapshot]:
        """Return the user's shows newest first, with seasons and episodes."""

    def search_series(
        self, user_id: UUID, query: str, limit: int
    ) -> list[tuple[SeriesRecord, list[SeasonRecord]]]:
        """Return shows whose title contains the query, case-insensitively."""

    def get_series(self, user_id: UUID, series_id: UUID) -> SeriesRecord | None:
        """Return a show owned by the user, if present."""

    def find_by_source(
        self, user_id: UUID, source: str, source_id: int
    ) -> SeriesRecord | None:
        """Return the user's show imported from the given catalog entry."""

    def create_series(self, user_id: UUID, draft: SeriesDraft) -> SeriesRecord:
        """Create a show with its seasons and episodes in one transaction.

        Raises ``DuplicateSeriesError`` when the provenance key is taken.
        """

    def delete_series(self, user_id: UUID, series_id: UUID) -> bool:
        """Delete a show with its seasons and episodes; return false if absent."""

    def list_seasons(self, user_id: UUID, series_id: UUID) -> list[SeasonRecord]:
        """Return seasons of a show ordered by number."""

    def add_season(
        self, user_id: UUID, series_id: UUID, episodes_count: int
    ) -> SeasonRecord | None:
        """Append a season with its episodes; return None if the show is absent."""

    def list_episodes(self, user_id: UUID, season_id: UUID) -> list[EpisodeRecord]:
        """Return episodes of a season ordered by number."""

    def reset_season(self, user_id: UUID, season_id: UUID) -> bool:
        """Recreate a season's episodes unwatched; return false if absent."""

    def toggle_episode(self, user_id: UUID, episode_id: UUID) -> EpisodeRecord | None:
        """Flip the watched flag; return None if the episode is absent."""


@dataclass(frozen=True)
class SeriesOverview:
    """A collection row with its computed progress."""

    series: SeriesRecord
    seasons_count: int
    episodes_count: int
    progress: ProgressSummary


@dataclass(frozen=True)
class Bootstrap:
    """Data needed to render the collection without further requests."""

    series: list[SeriesOverview]
    seasons_by_series: dict[UUID, list[SeasonRecord]]
    episodes_by_season: dict[UUID, list[EpisodeRecord]]


@dataclass
class SeriesService:
    """Application service for the user's show collection."""

    repository: SeriesRepository

    def list_overview(self, user_id: UUID) -> list[SeriesOverview]:
        """Return every show with season count, episode count and progress."""
        return [_overview(item) for item in self.repository.list_snapshots(user_id)]

    def in_progress_count(self, user_id: UUID) -> int:
        """Return how many shows still have unwatched episodes."""
        return count_in_progress(self.repository.list_snapshots(user_id))

    def get_series(self, user_id: UUID, series_id: UUID) -> SeriesRecord:
        """Return a show or raise ``NotFoundError``."""
        series = self.repository.get_series(user_id, series_id)
        if series is None:
            raise NotFoundError("Series not found")
        return series

    def get_poster(self, user_id: UUID, series_id: UUID) -> str | None:
        """Return the poster URL of a show, if any."""
        series = self.repository.get_series(user_id, series_id)
        return series.poster_url if series else None

    def create_series(
        self, user_id: UUID, title: str, seasons: list[SeasonDraft]
    ) -> SeriesRecord:
        """Create a show manually together with its seasons and episodes."""
        cleaned_title = title.strip()
        if not cleaned_title:
            raise ValidationError("title is required")
        if not seasons:
            raise ValidationError("seasons are required")

        ordered = sorted(seasons, key=lambda season: season.number)
        for season in ordered:
            if season.number <= 0:
                raise ValidationError("invalid season number")
            if season.episodes_count <= 0:
                raise ValidationError("invalid episodes_count")
            if season.episodes_count > MAX_MANUAL_EPISODES:
                raise ValidationError("episodes_count is too large")
        for previous, current in zip(ordered, ordered[1:], strict=False):
            if previous.number == current.number:
                raise ValidationError("duplicate season number")

        created = self.repository.create_series(
            user_id, SeriesDraft(title=cleaned_title, seasons=ordered, kind="series")
        )
        logger.info(
            "Created series",
            extra={"series_id": str(created.id), "seasons": len(ordered)},
        )
        return created

    def delete_series(self, user_id: UUID, series_id: UUID) -> None:
        """Delete a show and everything under it."""
        if not self.repository.delete_series(user_id, series_id):
            raise NotFoundError("Series not found")
        logger.info("Deleted series", extra={"series_id": str(series_id)})

    def list_seasons(self, user_id: UUID, series_id: UUID) -> list[SeasonRecord]:
        """Return numbered seasons of a show."""
        return [
            season
            for season in self.repository.list_seasons(user_id, series_id)
            if season.number >= 1
        ]

    def add_season(
        self, user_id: UUID, series_id: UUID, episodes_count: int
    ) -> SeasonRecord:
        """Append the next season to a show."""
        if not 1 <= episodes_count <= MAX_SEASON_EPISODES:
            raise ValidationError(
                f"episodes_count must be an integer between 1 and {MAX_SEASON_EPISODES}"
            )
        season = self.repository.add_season(user_id, series_id, episodes_count)
        if season is None:
            raise NotFoundError("Series not found")
        return season

    def list_episodes(self, user_id: UUID, season_id: UUID) -> list[EpisodeRecord]:
        """Return episodes of a season."""
        return self.repository.list_episodes(user_id, season_id)

    def reset_season(self, user_id: UUID, season_id: UUID) -> None:
        """Recreate the declared number of unwatched episodes."""
        if not self.repository.reset_season(user_id, season_id):
            raise NotFoundError("Season not found")

    def toggle_episode(self, user_id: UUID, episode_id: UUID) -> EpisodeRecord:
        """Flip the watched state of an episode."""
        episode = self.repository.toggle_episode(user_id, episode_id)
        if episode is None:
            raise NotFoundError("Not found")
        return episode

    def search(
        self, user_id: UUID, query: str
    ) -> list[tuple[SeriesRecord, list[SeasonRecord]]]:
        """Search the user's own shows by title."""
        cleaned = query.strip()
        if len(cleaned) < SEARCH_MIN_LENGTH:
            return []
        return self.repository.search_series(user_id, cleaned, SEARCH_LIMIT)

    def bootstrap(self, user_id: UUID) -> Bootstrap:
        """Return the collection plus first-season episodes of every show."""
        snapshots = self.repository.list_snapshots(user_id)
        seasons_by_series: dict[UUID, list[SeasonRecord]] = {}
        episodes_by_season: dict[UUID, list[EpisodeRecord]] = {}
        for snapshot in snapshots:
            seasons = sorted(snapshot.seasons, key=lambda season: season.number)
            seasons_by_series[snapshot.series.id] = seasons
            if seasons:
                first = seasons[0]
                episodes_by_season[first.id] = snapshot.episodes_by_season.get(
                    first.id, []
                )
        return Bootstrap(
            series=[_overview(snapshot) for snapshot in snapshots],
            seasons_by_series=seasons_by_series,
            episodes_by_season=episodes_by_season,
        )

    def preload(self, user_id: UUID, limit: int = PRELOAD_DEFAULT_LIMIT) -> Bootstrap:
        """Return the newest shows with all their seasons and episodes."""
        clamped = max(1, min(PRELOAD_MAX_LIMIT, limit))
        snapshots = self.repository.list_snapshots(user_id, limit=clamped)
        seasons_by_series: dict[UUID, list[SeasonRecord]] = {}
        episodes_by_season: dict[UUID, list[EpisodeRecord]] = {}
        for snapshot in snapshots:
            seasons_by_series[snapshot.series.id] = sorted(
                snapshot.seasons, key=lambda season: season.number
            )
            for season in snapshot.seasons:
                episodes_by_season[season.id] = snapshot.episodes_by_season.get(
                    season.id, []
                )
        return Bootstrap(
            series=[_overview(snapshot) for snapshot in snapshots],
            seasons_by_series=seasons_by_series,
            episodes_by_season=episodes_by_season,
        )


def _overview(snapshot: SeriesSnapshot) -> SeriesOverview:
    progress = snapshot_progress(snapshot)
    return SeriesOverview(
        series=snapshot.series,
        seasons_count=len(snapshot.seasons),
        episodes_count=progress.total_episodes,
        progress=progress,
    )
