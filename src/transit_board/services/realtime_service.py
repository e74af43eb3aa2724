"""Live delay service for the GTFS-RT trip updates feed.

Upstream is hit at most once per cache window; concurrent callers share
the in-flight fetch. All errors are caught and logged - on failure the last
known delays are served, or an empty map when there are none.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from transit_board.data.cache import CacheState, FeedCache
from transit_board.data.config import BoardConfig, get_board_config
from transit_board.data.gtfsrt_client import GTFSRTClient

logger = logging.getLogger(__name__)

DelayFetcher = Callable[[], Awaitable[dict[str, int]]]


class LiveFeedCache:
    """Time-boxed cache of trip_id -> delay seconds."""

    def __init__(
        self,
        config: BoardConfig,
        fetcher: DelayFetcher | None = None,
        time_func: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            config: Board configuration (feed URL, TTL, timeout).
            fetcher: Coroutine function returning a fresh delay map.
                Defaults to fetching the configured GTFS-RT URL.
            time_func: Monotonic time source, injectable for tests.
        """
        self._config = config
        self._fetcher = fetcher or self._fetch_from_feed
        self._cache: FeedCache[dict[str, int]] = FeedCache(
            ttl=config.cache_ttl_seconds, time_func=time_func
        )

    @property
    def state(self) -> CacheState:
        return self._cache.state

    async def _fetch_from_feed(self) -> dict[str, int]:
        async with GTFSRTClient(self._config) as client:
            return await client.fetch_delays()

    async def get_live_delays(self, force_refresh: bool = False) -> dict[str, int]:
        """Get live delays, refreshing when the cached map has expired.

        Args:
            force_refresh: If True, bypass cache and fetch fresh data.

        Returns:
            Mapping of trip_id to delay in seconds. Never raises.
        """
        # Check cache first (unless force refresh)
        if not force_refresh:
            cached = self._cache.get()
            if cached is not None:
                return cached

        # Acquire lock so that only one fetch is in flight
        async with self._cache.lock:
            # Callers that waited on the lock reuse the fetch that just finished
            if not force_refresh:
                cached = self._cache.get()
                if cached is not None:
                    return cached

            try:
                async with asyncio.timeout(self._config.fetch_timeout_seconds):
                    delays = await self._fetcher()
            except Exception as e:
                stale = self._cache.get_stale()
                logger.warning(
                    f"Failed to fetch live delays: {e!r}; "
                    + ("serving stale delays" if stale is not None else "no delays available")
                )
                return stale if stale is not None else {}

            self._cache.set(delays)
            logger.debug(f"Fetched delays for {len(delays):,} trips")
            return delays

    def clear(self) -> None:
        self._cache.clear()


# Module-level cache (lazy-initialized)
_live_cache: LiveFeedCache | None = None


def get_live_cache() -> LiveFeedCache:
    """Get or create the live feed cache singleton."""
    global _live_cache
    if _live_cache is None:
        _live_cache = LiveFeedCache(get_board_config())
    return _live_cache


async def get_live_delays(force_refresh: bool = False) -> dict[str, int]:
    """Fetch live delays through the shared cache."""
    return await get_live_cache().get_live_delays(force_refresh=force_refresh)


def reset_service() -> None:
    """Reset the service state completely.

    Drops the cache and re-reads configuration. Useful for testing.
    """
    global _live_cache
    _live_cache = None
    # hasattr check handles case where function is mocked in tests
    if hasattr(get_board_config, "cache_clear"):
        get_board_config.cache_clear()
