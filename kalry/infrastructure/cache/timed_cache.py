"""
Single-value cache with TTL.

Holds one value (e.g. today's DailyTotals) and is passed by reference to
the services that read or update it.
"""

import time
from typing import Callable, Generic, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class TimedCache(Generic[T]):
    """In-memory single-value cache with TTL."""

    def __init__(
        self,
        ttl_seconds: float = 300,
        name: str = "cache",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: Seconds a stored value stays fresh (default 5 minutes)
            name: Label used in log events
            clock: Time source, seconds
        """
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self.value: Optional[T] = None
        self.stored_at: Optional[float] = None
        self.hits = 0
        self.misses = 0

    def is_fresh(self) -> bool:
        """True when a value is stored and younger than the TTL."""
        if self.stored_at is None:
            return False
        return (self._clock() - self.stored_at) < self.ttl_seconds

    def get(self) -> Optional[T]:
        """Get the cached value.

        Returns:
            Value, or None when empty or expired

        Example:
            >>> cache = TimedCache(ttl_seconds=60)
            >>> cache.get() is None
            True
        """
        if self.stored_at is None:
            self.misses += 1
            logger.debug("Cache miss", cache=self.name)
            return None

        if not self.is_fresh():
            self.misses += 1
            logger.debug("Cache expired", cache=self.name)
            self.invalidate()
            return None

        self.hits += 1
        logger.debug("Cache hit", cache=self.name)
        return self.value

    def set(self, value: T) -> None:
        """Store a value and restart its TTL."""
        self.value = value
        self.stored_at = self._clock()
        logger.debug("Cached value", cache=self.name, ttl=self.ttl_seconds)

    def invalidate(self) -> None:
        """Drop the stored value."""
        self.value = None
        self.stored_at = None
