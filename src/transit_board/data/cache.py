"""Simple TTL-based cache for the GTFS-RT feed."""

import asyncio
import time
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class CacheState(str, Enum):
    """Lifecycle of a cached feed value."""

    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


class FeedCache(Generic[T]):
    """Single-value TTL cache for one feed.

    Keeps the last value after it expires so callers can fall back to it
    when a refresh fails. Uses an async lock to prevent concurrent fetches.
    """

    def __init__(self, ttl: float = 8.0, time_func: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            ttl: Time-to-live in seconds for cached values.
            time_func: Monotonic time source, injectable for tests.
        """
        self._ttl = ttl
        self._time = time_func
        self._value: T | None = None
        self._expires_at: float = 0
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CacheState:
        """Current state of the cached value."""
        if self._value is None:
            return CacheState.EMPTY
        if self._time() < self._expires_at:
            return CacheState.FRESH
        return CacheState.STALE

    def get(self) -> T | None:
        """Get the cached value if it hasn't expired.

        Returns:
            The cached value if fresh, None if expired or not set.
        """
        if self.state is CacheState.FRESH:
            return self._value
        return None

    def get_stale(self) -> T | None:
        """Get the last stored value regardless of age."""
        return self._value

    def set(self, value: T) -> None:
        """Set a value in the cache with TTL.

        Args:
            value: The value to cache.
        """
        self._value = value
        self._expires_at = self._time() + self._ttl

    def clear(self) -> None:
        """Clear the cached value."""
        self._value = None
        self._expires_at = 0

    @property
    def lock(self) -> asyncio.Lock:
        """Get the async lock for coordinating fetches."""
        return self._lock
