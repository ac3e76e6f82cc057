"""Tests for the API consumer: response cache and boot sequence."""

import asyncio
import json

import httpx
import pytest

from series_tracker.client.api_client import ApiError, SeriesTrackerClient
from series_tracker.client.boot import BootSequence, wait_for_launch_data
from series_tracker.client.cache import CacheKeys, CachePolicy, ResponseCache


def _loader(values: list[object], calls: list[int]):  # type: ignore[no-untyped-def]
    async def load() -> object:
        calls.append(1)
        return values[min(len(calls), len(values)) - 1]

    return load


def test_fetch_loads_missing_key() -> None:
    cache = ResponseCache()
    calls: list[int] = []

    value = asyncio.run(cache.fetch("k", _loader(["fresh"], calls)))

    assert value == "fresh"
    assert cache.get("k") == "fresh"
    assert calls == [1]


def test_stale_while_revalidate_returns_cached_then_refreshes() -> None:
    async def scenario() -> tuple[object, object, int]:
        cache = ResponseCache()
        cache.set("k", "stale")
        calls: list[int] = []
        loader = _loader(["fresh"], calls)

        first = await cache.fetch("k", loader)
        await cache.fetch("k", loader)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return first, cache.get("k"), len(calls)

    first, after, calls = asyncio.run(scenario())

    assert first == "stale"
    assert after == "fresh"
    assert calls == 1


def test_force_refresh_awaits_loader() -> None:
    cache = ResponseCache()
    cache.set("k", "stale")

    value = asyncio.run(
        cache.fetch("k", _loader(["fresh"], []), policy=CachePolicy.FORCE_REFRESH)
    )

    assert value == "fresh"


def test_failed_background_refresh_keeps_value() -> None:
    async def failing() -> object:
        raise httpx.ConnectError("offline")

    async def scenario() -> object:
        cache = ResponseCache()
        cache.set("k", "stale")
        await cache.fetch("k", failing)
        await asyncio.sleep(0)
        await cache.aclose()
        return cache.get("k")

    assert asyncio.run(scenario()) == "stale"


def test_invalidation() -> None:
    cache = ResponseCache()
    cache.set(CacheKeys.series_list(), [])
    cache.set(CacheKeys.seasons("a"), [])
    cache.set(CacheKeys.episodes("b"), [])

    cache.invalidate(CacheKeys.series_list())
    assert CacheKeys.series_list() not in cache

    cache.invalidate_prefix("/api/series/")
    assert CacheKeys.seasons("a") not in cache
    assert CacheKeys.episodes("b") in cache

    cache.clear()
    assert CacheKeys.episodes("b") not in cache


@pytest.mark.parametrize(
    "drop",
    [
        lambda cache: cache.invalidate("/api/series"),
        lambda cache: cache.invalidate_prefix("/api/"),
        lambda cache: cache.clear(),
    ],
    ids=["invalidate", "invalidate_prefix", "clear"],
)
def test_invalidation_cancels_pending_refresh(drop) -> None:  # type: ignore[no-untyped-def]
    async def scenario() -> bool:
        cache = ResponseCache()
        cache.set("/api/series", "stale")
        gate = asyncio.Event()

        async def slow() -> object:
            await gate.wait()
            return "fresh"

        await cache.fetch("/api/series", slow)
        await asyncio.sleep(0)
        drop(cache)
        gate.set()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        await cache.aclose()
        return "/api/series" in cache

    assert asyncio.run(scenario()) is False


def test_wait_for_launch_data_polls_until_available() -> None:
    values = iter([None, "", "payload"])

    result = asyncio.run(
        wait_for_launch_data(lambda: next(values), timeout=1.0, interval=0.001)
    )

    assert result == "payload"


def test_wait_for_launch_data_times_out() -> None:
    result = asyncio.run(wait_for_launch_data(lambda: None, timeout=0.01, interval=0.002))

    assert result is None


def _api(handler) -> SeriesTrackerClient:  # type: ignore[no-untyped-def]
    return SeriesTrackerClient(
        http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://app.test"
        )
    )


def _backend(series_ids: list[str], fail_for: str | None = None):  # type: ignore[no-untyped-def]
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        seen.append(path)
        if path == "/api/auth/telegram":
            assert json.loads(request.content) == {"initData": "signed"}
            return httpx.Response(
                200, json={"ok": True}, headers={"set-cookie": "session=t; Path=/"}
            )
        if path == "/api/series":
            return httpx.Response(200, json=[{"id": sid} for sid in series_ids])
        if path == "/api/preload":
            limit = int(request.url.params["limit"])
            top = series_ids[:limit]
            return httpx.Response(
                200,
                json={
                    "series": [{"id": sid} for sid in top],
                    "seasons_by_series": {sid: [{"id": f"{sid}-s1"}] for sid in top},
                    "episodes_by_season": {f"{sid}-s1": [] for sid in top},
                },
            )
        if path.endswith("/seasons"):
            series_id = path.split("/")[3]
            if series_id == fail_for:
                return httpx.Response(500, json={"error": "Internal error"})
            return httpx.Response(200, json=[{"id": f"{series_id}-s1"}])
        if path.endswith("/episodes"):
            return httpx.Response(200, json=[{"id": "e1", "watched": False}])
        return httpx.Response(404, json={"error": "Not found"})

    return handler, seen


def test_boot_warms_cache() -> None:
    handler, seen = _backend(["a", "b", "c", "d"])

    async def scenario() -> tuple[int, ResponseCache]:
        cache = ResponseCache()
        boot = BootSequence(
            client=_api(handler),
            cache=cache,
            launch_data=lambda: "signed",
            blocking_count=2,
        )
        result = await boot.run()
        await boot.wait_background()
        return result.series_count, cache

    count, cache = asyncio.run(scenario())

    assert count == 4
    assert seen[:3] == ["/api/auth/telegram", "/api/series", "/api/preload"]
    for series_id in ["a", "b", "c", "d"]:
        assert CacheKeys.seasons(series_id) in cache
        assert CacheKeys.episodes(f"{series_id}-s1") in cache
    assert cache.get(CacheKeys.series_list()) == [
        {"id": "a"},
        {"id": "b"},
        {"id": "c"},
        {"id": "d"},
    ]


def test_boot_without_launch_data_skips_login() -> None:
    handler, seen = _backend(["a"])

    async def scenario() -> int:
        boot = BootSequence(
            client=_api(handler),
            cache=ResponseCache(),
            launch_data=lambda: None,
            launch_data_timeout=0.01,
        )
        return (await boot.run()).series_count

    assert asyncio.run(scenario()) == 1
    assert "/api/auth/telegram" not in seen


def test_background_failures_do_not_stop_warmup() -> None:
    handler, _ = _backend(["a", "b", "c"], fail_for="b")

    async def scenario() -> ResponseCache:
        cache = ResponseCache()
        boot = BootSequence(
            client=_api(handler),
            cache=cache,
            launch_data=lambda: None,
            launch_data_timeout=0,
            blocking_count=1,
            workers=1,
        )
        await boot.run()
        await boot.wait_background()
        return cache

    cache = asyncio.run(scenario())

    assert CacheKeys.seasons("b") not in cache
    assert CacheKeys.seasons("c") in cache


def test_failed_preload_still_boots() -> None:
    handler, seen = _backend(["a", "b"])

    def flaky(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/preload":
            seen.append(request.url.path)
            return httpx.Response(500, json={"error": "Internal error"})
        return handler(request)

    async def scenario():  # type: ignore[no-untyped-def]
        cache = ResponseCache()
        boot = BootSequence(
            client=_api(flaky),
            cache=cache,
            launch_data=lambda: None,
            launch_data_timeout=0,
        )
        result = await boot.run()
        await boot.wait_background()
        return result, cache

    result, cache = asyncio.run(scenario())

    assert result.series_count == 2
    assert result.error is None
    assert "/api/preload" in seen
    assert cache.get(CacheKeys.series_list()) == [{"id": "a"}, {"id": "b"}]
    assert CacheKeys.seasons("a") in cache
    assert CacheKeys.seasons("b") in cache


def test_boot_reports_api_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "Unauthorized"})

    async def scenario():  # type: ignore[no-untyped-def]
        boot = BootSequence(
            client=_api(handler),
            cache=ResponseCache(),
            launch_data=lambda: None,
            launch_data_timeout=0,
        )
        return await boot.run()

    result = asyncio.run(scenario())

    assert result.series_count == 0
    assert result.error == "Request failed: 401"


def test_client_raises_api_error_with_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Not found"})

    async def scenario() -> None:
        client = _api(handler)
        try:
            await client.toggle_episode("missing")
        finally:
            await client.close()

    with pytest.raises(ApiError) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.status == 404
    assert excinfo.value.payload == {"error": "Not found"}
