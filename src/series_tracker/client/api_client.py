"""Async HTTP client for the series tracker API."""

from dataclasses import dataclass
from typing import Any

import httpx


class ApiError(Exception):
    """The API answered with a non-success status."""

    def __init__(self, status: int, payload: object) -> None:
        super().__init__(f"Request failed: {status}")
        self.status = status
        self.payload = payload


@dataclass
class SeriesTrackerClient:
    """HTTPX-backed client keeping the session cookie between calls."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "SeriesTrackerClient":
        """Create a client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(base_url=base_url, timeout=15))

    async def authenticate(self, init_data: str) -> None:
        """Exchange launch data for a session cookie."""
        await self._request("POST", "/api/auth/telegram", json={"initData": init_data})

    async def list_series(self) -> list[dict[str, object]]:
        """Return the collection with progress."""
        return await self._request("GET", "/api/series")

    async def list_seasons(self, series_id: str) -> list[dict[str, object]]:
        """Return seasons of a show."""
        return await self._request("GET", f"/api/series/{series_id}/seasons")

    async def list_episodes(self, season_id: str) -> list[dict[str, object]]:
        """Return episodes of a season."""
        return await self._request("GET", f"/api/seasons/{season_id}/episodes")

    async def toggle_episode(self, episode_id: str) -> dict[str, object]:
        """Flip an episode's watched flag."""
        return await self._request("PATCH", f"/api/episodes/{episode_id}")

    async def preload(self, limit: int = 3) -> dict[str, object]:
        """Return the newest shows with all seasons and episodes."""
        return await self._request("GET", "/api/preload", params={"limit": limit})

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self.http_client.request(method, path, **kwargs)
        if response.is_error:
            try:
                payload: object = response.json()
            except ValueError:
                payload = response.text
            raise ApiError(response.status_code, payload)
        return response.json()
