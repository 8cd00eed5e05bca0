"""Cache backends for the prediction cache.

``RedisCachePort`` adapts a ``redis.asyncio`` client to the ``CachePort``
interface, translating connection-level failures into
``CacheUnavailableError``.  ``build_prediction_cache`` picks the backend from
settings at startup; without a reachable configuration it falls back to the
no-op port, which makes every read a miss.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from cyclecast.config import Settings, get_settings
from cyclecast.forecast.cache import (
    CachePort,
    MemoryCachePort,
    NullCachePort,
    PredictionCache,
)
from cyclecast.forecast.errors import CacheUnavailableError

logger = logging.getLogger("cyclecast.cache")

_BACKEND_ERRORS: tuple[type[BaseException], ...] = (RedisError, OSError)


class RedisCachePort:
    """CachePort over a ``redis.asyncio.Redis`` client (string values)."""

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except _BACKEND_ERRORS as exc:
            raise CacheUnavailableError(f"GET {key} failed: {exc}") from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except _BACKEND_ERRORS as exc:
            raise CacheUnavailableError(f"SET {key} failed: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except _BACKEND_ERRORS as exc:
            raise CacheUnavailableError(f"DEL {key} failed: {exc}") from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except _BACKEND_ERRORS as exc:
            logger.warning("Redis ping failed: %s", exc)
            return False

    async def close(self) -> None:
        await self._client.aclose()


def build_cache_port(settings: Settings | None = None) -> CachePort:
    """Create the cache port selected by ``settings.cache_backend``."""
    s = settings or get_settings()
    backend = s.cache_backend.lower()

    if backend == "redis":
        if not s.redis_url:
            logger.info("Redis not configured, prediction caching disabled")
            return NullCachePort()
        client = aioredis.from_url(s.redis_url, decode_responses=True)
        logger.info("Prediction cache backed by redis")
        return RedisCachePort(client)
    if backend == "memory":
        logger.info("Prediction cache backed by process memory")
        return MemoryCachePort()
    if backend != "none":
        logger.warning("Unknown cache_backend %r, prediction caching disabled", backend)
    return NullCachePort()


def build_prediction_cache(settings: Settings | None = None) -> PredictionCache:
    return PredictionCache(build_cache_port(settings))


async def close_prediction_cache(cache: PredictionCache) -> None:
    port = cache.port
    if isinstance(port, RedisCachePort):
        await port.close()
        logger.info("Redis connection closed")


async def cache_status(cache: PredictionCache) -> str:
    """Report 'connected', 'unreachable', or 'disabled' for health checks."""
    port = cache.port
    if isinstance(port, RedisCachePort):
        return "connected" if await port.ping() else "unreachable"
    if isinstance(port, MemoryCachePort):
        return "connected"
    return "disabled"
