"""Explicit response cache for API consumers."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[object]]


class CachePolicy(StrEnum):
    """How ``ResponseCache.fetch`` treats an existing entry."""

    STALE_WHILE_REVALIDATE = "stale-while-revalidate"
    FORCE_REFRESH = "force-refresh"


class CacheKeys:
    """Canonical cache keys, one per API resource."""

    @staticmethod
    def series_list() -> str:
        return "/api/series"

    @staticmethod
    def seasons(series_id: str) -> str:
        return f"/api/series/{series_id}/seasons"

    @staticmethod
    def episodes(season_id: str) -> str:
        return f"/api/seasons/{season_id}/episodes"


@dataclass
class ResponseCache:
    """Key-value store of API responses with explicit invalidation."""

    _entries: dict[str, object] = field(default_factory=dict)
    _refreshing: dict[str, asyncio.Task[None]] = field(default_factory=dict)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> object | None:
        """Return the cached value, if any."""
        return self._entries.get(key)

    def set(self, key: str, value: object) -> None:
        """Store a value without revalidating it."""
        self._entries[key] = value

    def invalidate(self, key: str) -> None:
        """Drop a single entry and any refresh still loading it."""
        self._cancel_refresh(key)
        self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> None:
        """Drop every entry whose key starts with the prefix."""
        keys = {*self._entries, *self._refreshing}
        for key in [key for key in keys if key.startswith(prefix)]:
            self.invalidate(key)

    def clear(self) -> None:
        """Drop all entries."""
        for key in list(self._refreshing):
            self._cancel_refresh(key)
        self._entries.clear()

    async def fetch(
        self,
        key: str,
        loader: Loader,
        policy: CachePolicy = CachePolicy.STALE_WHILE_REVALIDATE,
    ) -> object:
        """Return the value for a key, loading it when needed.

        With stale-while-revalidate a cached value is returned immediately and
        refreshed in the background; force-refresh always awaits the loader.
        """
        if policy is CachePolicy.STALE_WHILE_REVALIDATE and key in self._entries:
            self._schedule_refresh(key, loader)
            return self._entries[key]
        value = await loader()
        self._entries[key] = value
        return value

    async def aclose(self) -> None:
        """Cancel pending background refreshes."""
        tasks = list(self._refreshing.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._refreshing.clear()

    def _schedule_refresh(self, key: str, loader: Loader) -> None:
        pending = self._refreshing.get(key)
        if pending is not None and not pending.done():
            return
        self._refreshing[key] = asyncio.create_task(self._refresh(key, loader))

    def _cancel_refresh(self, key: str) -> None:
        pending = self._refreshing.pop(key, None)
        if pending is not None:
            pending.cancel()

    async def _refresh(self, key: str, loader: Loader) -> None:
        try:
            self._entries[key] = await loader()
        except Exception:
            logger.warning("Background refresh failed", extra={"key": key}, exc_info=True)
        finally:
            # a newer refresh may own the slot after this one was cancelled
            if self._refreshing.get(key) is asyncio.current_task():
                del self._refreshing[key]
