"""Domain models for shows, seasons and episodes."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class SeriesRecord:
    """Represents a show owned by a user."""

    id: UUID
    user_id: UUID
    title: str
    poster_url: str | None = None
    year: int | None = None
    kind: str | None = None
    source: str | None = None
    source_id: int | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class SeasonRecord:
    """Represents a season of a show."""

    id: UUID
    series_id: UUID
    number: int
    episodes_count: int


@dataclass(frozen=True)
class EpisodeRecord:
    """Represents a single episode and its watch state."""

    id: UUID
    season_id: UUID
    number: int
    watched: bool


@dataclass(frozen=True)
class SeasonDraft:
    """A season to be created together with its episodes."""

    number: int
    episodes_count: int


@dataclass(frozen=True)
class SeriesDraft:
    """Everything needed to create a show in one transaction."""

    title: str
    seasons: list[SeasonDraft] = field(default_factory=list)
    poster_url: str | None = None
    year: int | None = None
    kind: str | None = None
    source: str | None = None
    source_id: int | None = None


@dataclass(frozen=True)
class SeriesSnapshot:
    """A show with its seasons and the episodes fetched for them."""

    series: SeriesRecord
    seasons: list[SeasonRecord]
    episodes_by_season: dict[UUID, list[EpisodeRecord]]


@dataclass(frozen=True)
class WatchPosition:
    """Season and episode numbers of a watched episode."""

    season: int
    episode: int


@dataclass(frozen=True)
class ProgressSummary:
    """Completion of a show."""

    percent: int
    last: WatchPosition | None
    watched_episodes: int
    total_episodes: int


@dataclass(frozen=True)
class ImportResult:
    """Outcome of importing a catalog title."""

    series: SeriesRecord
    already_exists: bool
