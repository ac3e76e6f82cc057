"""Catalog search and import of titles into the user's collection."""

import logging
from dataclasses import dataclass
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from series_tracker.adapters.poiskkino_client import CatalogClient
from series_tracker.domain.catalog import CatalogSearchPage, CatalogTitle
from series_tracker.domain.series import ImportResult, SeasonDraft, SeriesDraft
from series_tracker.services.cache import Cache
from series_tracker.services.errors import CatalogUpstreamError, DuplicateSeriesError
from series_tracker.services.series import SeriesRepository

logger = logging.getLogger(__name__)

SOURCE = "poiskkino"
TITLE_CACHE_TTL_SECONDS = 3600
SEARCH_MIN_LENGTH = 2


@dataclass
class CatalogService:
    """Service wrapping the external catalog."""

    client: CatalogClient
    repository: SeriesRepository
    cache: Cache

    async def search(
        self, query: str, page: int = 1, limit: int = 20
    ) -> CatalogSearchPage:
        """Search the catalog, dropping results without an id."""
        cleaned = query.strip()
        if len(cleaned) < SEARCH_MIN_LENGTH:
            return CatalogSearchPage(items=[], page=page, limit=limit)

        data = await self.client.search_titles(cleaned, page=page, limit=limit)
        docs = data.get("docs")
        items: list[CatalogTitle] = []
        for doc in docs if isinstance(docs, list) else []:
            try:
                items.append(CatalogTitle.model_validate(doc))
            except PydanticValidationError:
                logger.debug("Skipping malformed catalog item", extra={"item": doc})
        return CatalogSearchPage(
            items=items,
            page=_int_or(data.get("page"), page),
            limit=_int_or(data.get("limit"), limit),
            pages=_int_or(data.get("pages"), None),
            total=_int_or(data.get("total"), None),
        )

    async def get_title(self, title_id: int) -> CatalogTitle:
        """Return a validated catalog title, cached for an hour."""
        cache_key = f"{SOURCE}:title:{title_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, CatalogTitle):
            return cached

        data = await self.client.get_title(title_id)
        try:
            title = CatalogTitle.model_validate(data)
        except PydanticValidationError as exc:
            raise CatalogUpstreamError("Catalog returned an invalid title") from exc
        self.cache.set(cache_key, title, ttl_seconds=TITLE_CACHE_TTL_SECONDS)
        return title

    async def import_title(self, user_id: UUID, title_id: int) -> ImportResult:
        """Import a catalog title once per user."""
        existing = self.repository.find_by_source(user_id, SOURCE, title_id)
        if existing:
            return ImportResult(series=existing, already_exists=True)

        title = await self.get_title(title_id)
        kind = "series" if title.is_series else "movie"
        seasons = (
            [
                SeasonDraft(
                    number=season.number, episodes_count=season.episodes_count
                )
                for season in title.valid_seasons
            ]
            if kind == "series"
            else []
        )
        draft = SeriesDraft(
            title=title.display_name or "Untitled",
            seasons=_dedupe_seasons(seasons),
            poster_url=title.poster_url,
            year=title.year,
            kind=kind,
            source=SOURCE,
            source_id=title_id,
        )
        try:
            created = self.repository.create_series(user_id, draft)
        except DuplicateSeriesError:
            winner = self.repository.find_by_source(user_id, SOURCE, title_id)
            if winner is None:
                raise
            logger.info(
                "Concurrent import resolved to existing series",
                extra={"series_id": str(winner.id), "source_id": title_id},
            )
            return ImportResult(series=winner, already_exists=True)

        logger.info(
            "Imported series",
            extra={"series_id": str(created.id), "source_id": title_id},
        )
        return ImportResult(series=created, already_exists=False)


def _dedupe_seasons(seasons: list[SeasonDraft]) -> list[SeasonDraft]:
    """Keep the first entry for every season number."""
    seen: dict[int, SeasonDraft] = {}
    for season in seasons:
        seen.setdefault(season.number, season)
    return sorted(seen.values(), key=lambda season: season.number)


def _int_or(value: object, default: int | None) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value
