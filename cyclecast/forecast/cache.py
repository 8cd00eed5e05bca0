"""Cache-aside layer for forecast payloads.

``PredictionCache`` fronts the forecast computation with a ``CachePort``:

- read hit              → payload served, computation skipped
- read miss / expired   → compute, write back with a fixed TTL, serve
- history write         → ``invalidate()`` drops the key immediately
- backing store failure → every read recomputes and nothing is written;
                          the failure is logged, never raised

Concurrent misses for one user may both compute and both write.  The
computation is pure, so the duplicate write is harmless and no lock is taken.

Usage::

    cache = PredictionCache(MemoryCachePort())
    payload, cached = await cache.get_or_compute(user_id, compute)
    await cache.invalidate(user_id)
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from cyclecast.forecast.errors import CacheUnavailableError

logger = logging.getLogger("cyclecast.forecast.cache")

CACHE_TTL_SECONDS = 3600
CACHE_KEY_PREFIX = "predictions"

Payload = dict[str, Any]


def prediction_cache_key(user_id: object) -> str:
    """Namespaced cache key for a user's forecast, e.g. ``predictions:<id>``."""
    return f"{CACHE_KEY_PREFIX}:{user_id}"


class CachePort(Protocol):
    """Minimal key/value store the prediction cache needs.

    Implementations raise ``CacheUnavailableError`` when the backing store
    cannot be reached.  A missing key is ``None``, not an error.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class NullCachePort:
    """Cache that stores nothing: every read is a miss."""

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None


@dataclass
class CacheEntry:
    """A stored payload with its creation time and TTL (seconds)."""

    value: str
    created_at: float
    ttl_seconds: int

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl_seconds


class MemoryCachePort:
    """In-process cache with lazy TTL expiry.

    Expired entries are removed when read, not swept in the background.
    Suitable for single-instance deployments and tests.

    Args:
        clock: Returns the current time in seconds (``time.monotonic`` by default).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = CacheEntry(
            value=value, created_at=self._clock(), ttl_seconds=ttl_seconds
        )

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class PredictionCache:
    """Cache-aside wrapper around forecast computation, keyed per user."""

    def __init__(self, port: CachePort, ttl_seconds: int = CACHE_TTL_SECONDS) -> None:
        self._port = port
        self._ttl = ttl_seconds

    @property
    def port(self) -> CachePort:
        return self._port

    async def get_or_compute(
        self, user_id: object, compute: Callable[[], Awaitable[Payload]]
    ) -> tuple[Payload, bool]:
        """Return the user's payload, computing and storing it on a miss.

        Args:
            user_id: User identifier used to build the cache key.
            compute: Coroutine factory producing a JSON-serializable payload.
                     Its exceptions propagate unchanged.

        Returns:
            ``(payload, served_from_cache)``.
        """
        key = prediction_cache_key(user_id)

        try:
            raw = await self._port.get(key)
        except CacheUnavailableError as exc:
            logger.warning("Cache read failed for %s, bypassing cache: %s", key, exc)
            return await compute(), False

        if raw is not None:
            try:
                payload = json.loads(raw)
            except ValueError:
                payload = None
            if isinstance(payload, dict):
                logger.debug("Cache hit: %s", key)
                return payload, True
            logger.warning("Discarding undecodable cache entry %s", key)

        logger.debug("Cache miss: %s", key)
        payload = await compute()

        try:
            await self._port.set(key, json.dumps(payload), self._ttl)
        except CacheUnavailableError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)
        return payload, False

    async def invalidate(self, user_id: object) -> None:
        """Drop the user's cached payload so the next read recomputes."""
        key = prediction_cache_key(user_id)
        try:
            await self._port.delete(key)
        except CacheUnavailableError as exc:
            logger.warning("Cache invalidation failed for %s: %s", key, exc)
        else:
            logger.debug("Cache invalidated: %s", key)
