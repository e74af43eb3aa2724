"""Tests for the live delay service."""

import asyncio

import httpx
import pytest

from transit_board.data.cache import CacheState
from transit_board.data.config import BoardConfig
from transit_board.services import realtime_service
from transit_board.services.realtime_service import LiveFeedCache


class FakeTime:
    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value


class FakeFetcher:
    """Scripted fetcher: returns or raises the queued results in order."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self) -> dict[str, int]:
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture(autouse=True)
def reset_service():
    """Reset the service state before and after each test."""
    realtime_service.reset_service()
    yield
    realtime_service.reset_service()


@pytest.fixture
def config() -> BoardConfig:
    return BoardConfig(BOARD_CACHE_TTL=8, BOARD_FETCH_TIMEOUT=0.2)


@pytest.mark.asyncio
async def test_fresh_value_served_without_fetch(config: BoardConfig):
    """A fresh cached value should be served without fetching."""
    clock = FakeTime()
    fetcher = FakeFetcher({"T1": 60}, {"T1": 120})
    cache = LiveFeedCache(config, fetcher=fetcher, time_func=clock)

    assert await cache.get_live_delays() == {"T1": 60}
    clock.value += 7
    assert await cache.get_live_delays() == {"T1": 60}
    assert fetcher.calls == 1
    assert cache.state is CacheState.FRESH


@pytest.mark.asyncio
async def test_expired_value_refetched_and_replaced(config: BoardConfig):
    """An expired value should be refetched and replaced wholesale."""
    clock = FakeTime()
    fetcher = FakeFetcher({"T1": 60, "T2": 30}, {"T3": 0})
    cache = LiveFeedCache(config, fetcher=fetcher, time_func=clock)

    await cache.get_live_delays()
    clock.value += 9
    # replaced wholesale, never merged
    assert await cache.get_live_delays() == {"T3": 0}
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_failure_serves_stale_value(config: BoardConfig):
    """A failed fetch should fall back to the stale value."""
    clock = FakeTime()
    fetcher = FakeFetcher({"T1": 60}, httpx.ConnectError("boom"))
    cache = LiveFeedCache(config, fetcher=fetcher, time_func=clock)

    await cache.get_live_delays()
    clock.value += 30
    assert await cache.get_live_delays() == {"T1": 60}
    assert cache.state is CacheState.STALE


@pytest.mark.asyncio
async def test_failure_without_previous_value_returns_empty(config: BoardConfig):
    """A failed first fetch should give an empty delay map."""
    fetcher = FakeFetcher(ValueError("not a feed"))
    cache = LiveFeedCache(config, fetcher=fetcher)

    assert await cache.get_live_delays() == {}
    assert cache.state is CacheState.EMPTY


@pytest.mark.asyncio
async def test_stalled_fetch_times_out(config: BoardConfig):
    """A fetch that hangs should be cut off by the timeout."""
    async def stalled() -> dict[str, int]:
        await asyncio.sleep(10)
        return {"never": 1}

    cache = LiveFeedCache(config, fetcher=stalled)
    assert await cache.get_live_delays() == {}


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_fetch(config: BoardConfig):
    """Concurrent callers should wait on a single fetch."""
    calls = 0

    async def slow_fetch() -> dict[str, int]:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.05)
        return {"T1": 120}

    cache = LiveFeedCache(config, fetcher=slow_fetch)
    results = await asyncio.gather(*(cache.get_live_delays() for _ in range(5)))

    assert calls == 1
    assert all(result == {"T1": 120} for result in results)


@pytest.mark.asyncio
async def test_force_refresh_bypasses_cache(config: BoardConfig):
    """force_refresh should fetch even when the cache is fresh."""
    fetcher = FakeFetcher({"T1": 60}, {"T1": 180})
    cache = LiveFeedCache(config, fetcher=fetcher)

    await cache.get_live_delays()
    assert await cache.get_live_delays(force_refresh=True) == {"T1": 180}


@pytest.mark.asyncio
async def test_module_accessor_uses_singleton(config: BoardConfig):
    """The module accessor should reuse one cache instance."""
    fetcher = FakeFetcher({"T9": 30})
    realtime_service._live_cache = LiveFeedCache(config, fetcher=fetcher)

    assert await realtime_service.get_live_delays() == {"T9": 30}
    assert await realtime_service.get_live_delays() == {"T9": 30}
    assert fetcher.calls == 1
