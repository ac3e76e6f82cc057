"""Watch-progress aggregation over already fetched rows."""

from collections.abc import Iterable, Mapping
from uuid import UUID

from series_tracker.domain.series import (
    EpisodeRecord,
    ProgressSummary,
    SeasonRecord,
    SeriesRecord,
    SeriesSnapshot,
    WatchPosition,
)


def compute_progress(
    series: SeriesRecord,
    seasons: list[SeasonRecord],
    episodes_by_season: Mapping[UUID, list[EpisodeRecord]],
) -> ProgressSummary:
    """Return completion percent and the furthest watched episode of a show."""
    total = 0
    watched = 0
    last: tuple[int, int] | None = None
    for season in seasons:
        if season.series_id != series.id:
            continue
        for episode in episodes_by_season.get(season.id, []):
            total += 1
            if not episode.watched:
                continue
            watched += 1
            position = (season.number, episode.number)
            if last is None or position > last:
                last = position

    return ProgressSummary(
        percent=_round_percent(watched, total),
        last=WatchPosition(season=last[0], episode=last[1]) if last else None,
        watched_episodes=watched,
        total_episodes=total,
    )


def snapshot_progress(snapshot: SeriesSnapshot) -> ProgressSummary:
    """Compute progress for a fetched show snapshot."""
    return compute_progress(
        snapshot.series, snapshot.seasons, snapshot.episodes_by_season
    )


def is_in_progress(snapshot: SeriesSnapshot) -> bool:
    """Return true when the show has at least one unwatched episode."""
    return any(
        not episode.watched
        for season in snapshot.seasons
        for episode in snapshot.episodes_by_season.get(season.id, [])
    )


def count_in_progress(snapshots: Iterable[SeriesSnapshot]) -> int:
    """Count shows that still have unwatched episodes."""
    return sum(1 for snapshot in snapshots if is_in_progress(snapshot))


def _round_percent(watched: int, total: int) -> int:
    """Round 100 * watched / total half-up without floating point."""
    if total <= 0:
        return 0
    return (200 * watched + total) // (2 * total)
