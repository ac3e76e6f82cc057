"""Supabase implementation for shows, seasons and episodes.

Multi-row writes call PostgreSQL functions (see ``supabase/schema.sql``) so
each one commits or rolls back as a single transaction.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from series_tracker.domain.series import (
    EpisodeRecord,
    SeasonRecord,
    SeriesDraft,
    SeriesRecord,
    SeriesSnapshot,
)
from series_tracker.services.errors import DuplicateSeriesError
from series_tracker.services.series import SeriesRepository

UNIQUE_VIOLATION = "23505"

_SERIES_COLUMNS = (
    "id, user_id, title, poster_url, year, kind, source, source_id, created_at"
)
_SEASON_COLUMNS = "id, series_id, number, episodes_count"
_EPISODE_COLUMNS = "id, season_id, number, watched"


@dataclass
class SupabaseSeriesRepository(SeriesRepository):
    """Supabase-backed repository for the show collection."""

    client: Client

    def list_snapshots(
        self, user_id: UUID, limit: int | None = None
    ) -> list[SeriesSnapshot]:
        """Return shows newest first with nested seasons and episodes."""
        query = (
            self.client.table("series")
            .select(
                f"{_SERIES_COLUMNS}, "
                f"seasons({_SEASON_COLUMNS}, episodes({_EPISODE_COLUMNS}))"
            )
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
        )
        if limit is not None:
            query = query.limit(limit)
        response = query.execute()
        return [_parse_snapshot(row) for row in response.data or []]

    def search_series(
        self, user_id: UUID, query: str, limit: int
    ) -> list[tuple[SeriesRecord, list[SeasonRecord]]]:
        """Return shows whose title contains the query."""
        response = (
            self.client.table("series")
            .select(f"{_SERIES_COLUMNS}, seasons({_SEASON_COLUMNS})")
            .eq("user_id", str(user_id))
            .ilike("title", f"%{_escape_like(query)}%")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [
            (
                _parse_series(row),
                [_parse_season(season) for season in row.get("seasons") or []],
            )
            for row in response.data or []
        ]

    def get_series(self, user_id: UUID, series_id: UUID) -> SeriesRecord | None:
        """Return a show owned by the user, if present."""
        response = (
            self.client.table("series")
            .select(_SERIES_COLUMNS)
            .eq("id", str(series_id))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_series(response.data[0])

    def find_by_source(
        self, user_id: UUID, source: str, source_id: int
    ) -> SeriesRecord | None:
        """Return the show imported from a catalog entry, if present."""
        response = (
            self.client.table("series")
            .select(_SERIES_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("source", source)
            .eq("source_id", source_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_series(response.data[0])

    def create_series(self, user_id: UUID, draft: SeriesDraft) -> SeriesRecord:
        """Create a show with its seasons and episodes in one transaction."""
        params = {
            "p_user_id": str(user_id),
            "p_title": draft.title,
            "p_poster_url": draft.poster_url,
            "p_year": draft.year,
            "p_kind": draft.kind,
            "p_source": draft.source,
            "p_source_id": draft.source_id,
            "p_seasons": [
                {"number": season.number, "episodes_count": season.episodes_count}
                for season in draft.seasons
            ],
        }
        try:
            response = self.client.rpc("create_series", params).execute()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateSeriesError("Series already exists") from exc
            raise
        rows = _rows(response.data)
        if not rows:
            raise RuntimeError("Failed to create series")
        return _parse_series(rows[0])

    def delete_series(self, user_id: UUID, series_id: UUID) -> bool:
        """Delete a show; seasons and episodes cascade in the same statement."""
        response = (
            self.client.table("series")
            .delete()
            .eq("id", str(series_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        return bool(response.data)

    def list_seasons(self, user_id: UUID, series_id: UUID) -> list[SeasonRecord]:
        """Return seasons of an owned show ordered by number."""
        response = (
            self.client.table("seasons")
            .select(f"{_SEASON_COLUMNS}, series!inner(user_id)")
            .eq("series_id", str(series_id))
            .eq("series.user_id", str(user_id))
            .order("number")
            .execute()
        )
        return [_parse_season(row) for row in response.data or []]

    def add_season(
        self, user_id: UUID, series_id: UUID, episodes_count: int
    ) -> SeasonRecord | None:
        """Append the next season and its episodes in one transaction."""
        response = self.client.rpc(
            "add_season",
            {
                "p_user_id": str(user_id),
                "p_series_id": str(series_id),
                "p_episodes_count": episodes_count,
            },
        ).execute()
        rows = _rows(response.data)
        if not rows:
            return None
        return _parse_season(rows[0])

    def list_episodes(self, user_id: UUID, season_id: UUID) -> list[EpisodeRecord]:
        """Return episodes of an owned season ordered by number."""
        response = (
            self.client.table("episodes")
            .select(f"{_EPISODE_COLUMNS}, seasons!inner(series!inner(user_id))")
            .eq("season_id", str(season_id))
            .eq("seasons.series.user_id", str(user_id))
            .order("number")
            .execute()
        )
        return [_parse_episode(row) for row in response.data or []]

    def reset_season(self, user_id: UUID, season_id: UUID) -> bool:
        """Recreate a season's episodes unwatched in one transaction."""
        response = self.client.rpc(
            "reset_season",
            {"p_user_id": str(user_id), "p_season_id": str(season_id)},
        ).execute()
        return response.data is True

    def toggle_episode(self, user_id: UUID, episode_id: UUID) -> EpisodeRecord | None:
        """Flip the watched flag with a single UPDATE."""
        response = self.client.rpc(
            "toggle_episode",
            {"p_user_id": str(user_id), "p_episode_id": str(episode_id)},
        ).execute()
        rows = _rows(response.data)
        if not rows:
            return None
        return _parse_episode(rows[0])


def _rows(data: object) -> list[dict[str, object]]:
    """Normalize RPC results that may come back as an object or a list."""
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [row for row in data if isinstance(row, dict)]
    return []


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_series(row: dict[str, object]) -> SeriesRecord:
    created_at = row.get("created_at")
    source_id = row.get("source_id")
    year = row.get("year")
    return SeriesRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        title=str(row["title"]),
        poster_url=row.get("poster_url"),
        year=int(year) if year is not None else None,
        kind=row.get("kind"),
        source=row.get("source"),
        source_id=int(source_id) if source_id is not None else None,
        created_at=datetime.fromisoformat(created_at)
        if isinstance(created_at, str) and created_at
        else None,
    )


def _parse_season(row: dict[str, object]) -> SeasonRecord:
    return SeasonRecord(
        id=UUID(str(row["id"])),
        series_id=UUID(str(row["series_id"])),
        number=int(row["number"]),
        episodes_count=int(row["episodes_count"]),
    )


def _parse_episode(row: dict[str, object]) -> EpisodeRecord:
    return EpisodeRecord(
        id=UUID(str(row["id"])),
        season_id=UUID(str(row["season_id"])),
        number=int(row["number"]),
        watched=bool(row["watched"]),
    )


def _parse_snapshot(row: dict[str, object]) -> SeriesSnapshot:
    seasons: list[SeasonRecord] = []
    episodes_by_season: dict[UUID, list[EpisodeRecord]] = {}
    for season_row in row.get("seasons") or []:
        season = _parse_season(season_row)
        seasons.append(season)
        episodes = [_parse_episode(item) for item in season_row.get("episodes") or []]
        episodes_by_season[season.id] = sorted(
            episodes, key=lambda episode: episode.number
        )
    seasons.sort(key=lambda season: season.number)
    return SeriesSnapshot(
        series=_parse_series(row),
        seasons=seasons,
        episodes_by_season=episodes_by_season,
    )
