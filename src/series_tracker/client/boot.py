"""Mini-App boot: authenticate, then warm the response cache."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from series_tracker.client.api_client import ApiError, SeriesTrackerClient
from series_tracker.client.cache import CacheKeys, ResponseCache

logger = logging.getLogger(__name__)

BLOCKING_PRELOAD = 3
BACKGROUND_WORKERS = 2


async def wait_for_launch_data(
    provider: Callable[[], str | None],
    timeout: float = 2.0,
    interval: float = 0.05,
) -> str | None:
    """Poll for launch data until it shows up or the timeout passes."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        value = provider()
        if value:
            return value
        remaining = deadline - loop.time()
        if remaining <= 0:
            return None
        await asyncio.sleep(min(interval, remaining))


@dataclass(frozen=True)
class BootResult:
    """Outcome of the blocking part of the boot sequence."""

    series_count: int
    error: str | None = None


@dataclass
class BootSequence:
    """Loads the collection and prefetches show details.

    Only the first ``blocking_count`` shows are awaited; the rest are warmed by
    background workers whose failures are logged and dropped.
    """

    client: SeriesTrackerClient
    cache: ResponseCache
    launch_data: Callable[[], str | None]
    launch_data_timeout: float = 2.0
    blocking_count: int = BLOCKING_PRELOAD
    workers: int = BACKGROUND_WORKERS
    _tasks: list[asyncio.Task[None]] = field(default_factory=list)

    async def run(self) -> BootResult:
        """Run the blocking boot steps and schedule background warm-up."""
        try:
            init_data = await wait_for_launch_data(
                self.launch_data, timeout=self.launch_data_timeout
            )
            if init_data:
                await self.client.authenticate(init_data)

            series = await self.client.list_series()
            self.cache.set(CacheKeys.series_list(), series)
        except (ApiError, httpx.HTTPError) as exc:
            logger.warning("Boot failed", exc_info=True)
            return BootResult(series_count=0, error=str(exc))

        series_ids = [str(item["id"]) for item in series]
        try:
            preload = await self.client.preload(limit=self.blocking_count)
            self._store_preload(preload)
            rest = series_ids[self.blocking_count :]
        except (ApiError, httpx.HTTPError):
            logger.warning("Preload failed, warming in background", exc_info=True)
            rest = series_ids
        if rest:
            self._start_workers(rest)
        return BootResult(series_count=len(series))

    async def warm_series(self, series_id: str) -> None:
        """Fetch and cache seasons and episodes of one show."""
        seasons = await self.client.list_seasons(series_id)
        self.cache.set(CacheKeys.seasons(series_id), seasons)
        for season in seasons:
            season_id = str(season["id"])
            episodes = await self.client.list_episodes(season_id)
            self.cache.set(CacheKeys.episodes(season_id), episodes)

    def cancel(self) -> None:
        """Stop background warm-up."""
        for task in self._tasks:
            task.cancel()

    async def wait_background(self) -> None:
        """Wait until background warm-up finishes or is cancelled."""
        await asyncio.gather(*self._tasks, return_exceptions=True)

    def _store_preload(self, preload: dict[str, object]) -> None:
        seasons_by_series = preload.get("seasons_by_series") or {}
        for series_id, seasons in seasons_by_series.items():
            self.cache.set(CacheKeys.seasons(series_id), seasons)
        episodes_by_season = preload.get("episodes_by_season") or {}
        for season_id, episodes in episodes_by_season.items():
            self.cache.set(CacheKeys.episodes(season_id), episodes)

    def _start_workers(self, series_ids: list[str]) -> None:
        queue: asyncio.Queue[str] = asyncio.Queue()
        for series_id in series_ids:
            queue.put_nowait(series_id)
        count = max(1, min(self.workers, len(series_ids)))
        self._tasks = [asyncio.create_task(self._worker(queue)) for _ in range(count)]

    async def _worker(self, queue: "asyncio.Queue[str]") -> None:
        while not queue.empty():
            series_id = queue.get_nowait()
            try:
                await self.warm_series(series_id)
            except Exception:
                logger.warning(
                    "Prefetch failed", extra={"series_id": series_id}, exc_info=True
                )
