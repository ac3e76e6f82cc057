"""PoiskKino catalog API client."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from series_tracker.services.errors import (
    CatalogNotFoundError,
    CatalogRateLimitError,
    CatalogUpstreamError,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = (
    "Catalog request limit reached. Try again later or add the series manually."
)


class CatalogClient(Protocol):
    """Interface for catalog API interactions."""

    async def search_titles(
        self, query: str, page: int = 1, limit: int = 20
    ) -> dict[str, object]:
        """Search titles by query and return raw API data."""

    async def get_title(self, title_id: int) -> dict[str, object]:
        """Fetch a title by catalog id and return raw API data."""


@dataclass
class HttpxPoiskKinoClient(CatalogClient):
    """HTTPX-backed PoiskKino client."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxPoiskKinoClient":
        """Create a catalog client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def search_titles(
        self, query: str, page: int = 1, limit: int = 20
    ) -> dict[str, object]:
        """Search titles by query."""
        return await self._get(
            "/v1.4/movie/search",
            params={"query": query, "page": page, "limit": limit},
        )

    async def get_title(self, title_id: int) -> dict[str, object]:
        """Fetch a title by id."""
        return await self._get(f"/v1.4/movie/{title_id}")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _get(
        self, path: str, params: dict[str, object] | None = None
    ) -> dict[str, object]:
        try:
            response = await self.http_client.get(
                f"{self.base_url}{path}",
                params=params,
                headers={"X-API-KEY": self.api_key},
                timeout=15,
            )
        except httpx.HTTPError as exc:
            logger.exception("Catalog request failed", extra={"path": path})
            raise CatalogUpstreamError("Catalog is unavailable") from exc

        status = response.status_code
        if status == httpx.codes.TOO_MANY_REQUESTS:
            raise CatalogRateLimitError(RATE_LIMIT_MESSAGE, status=status)
        if status == httpx.codes.NOT_FOUND:
            raise CatalogNotFoundError("Title not found", status=status)
        if response.is_error:
            logger.warning(
                "Catalog returned an error", extra={"path": path, "status": status}
            )
            raise CatalogUpstreamError("Catalog error", status=status)
        try:
            data = response.json()
        except ValueError as exc:
            raise CatalogUpstreamError("Catalog returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise CatalogUpstreamError("Catalog returned an unexpected payload")
        return data
