"""Key/value store with TTLs for transient sync state.

Every key is automatically prefixed with ``notion_sync:`` so the sync
service can share a Redis database with the host. The store backs three
kinds of state:

- data source discovery cache (``data_sources:{database_id}``, 24h TTL)
- per-post retry counters (``retry:{post_id}``, 1h TTL)
- the bounded activity log (``sync_log``, capped list)

``MemoryStore`` provides the same contract in-process for deployments
where Redis is not reachable and the local scheduler fallback is used.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

import redis.asyncio as aioredis

from src.notion_sync.config import get_settings

KEY_PREFIX = "notion_sync:"

# ── Module-level Redis pools (lazy init, one per URL) ───────────────────────

_redis_pools: dict[str, aioredis.Redis] = {}


def get_redis_pool(redis_url: str | None = None) -> aioredis.Redis:
    """Get or create the Redis connection pool for ``redis_url``.

    Defaults to ``REDIS_URL`` from the global settings.
    """
    url = redis_url or get_settings().REDIS_URL
    pool = _redis_pools.get(url)
    if pool is None:
        pool = aioredis.from_url(url, decode_responses=True)
        _redis_pools[url] = pool
    return pool


async def close_redis() -> None:
    """Close every Redis connection pool."""
    while _redis_pools:
        _url, pool = _redis_pools.popitem()
        await pool.aclose()


# ── Store interface ─────────────────────────────────────────────────────────


class KeyValueStore(ABC):
    """Minimal TTL-capable key/value contract the sync core depends on."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get a value, or None if absent or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        """Set a value with optional TTL (seconds)."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a key (no-op if absent)."""
        ...

    @abstractmethod
    async def push(self, key: str, value: str, maxlen: int) -> None:
        """Prepend to a list and truncate it to ``maxlen`` items."""
        ...

    @abstractmethod
    async def range(self, key: str, count: int) -> list[str]:
        """Return up to ``count`` items from the head of a list."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Check the backend is reachable."""
        ...


# ── Redis implementation ────────────────────────────────────────────────────


class RedisStore(KeyValueStore):
    """Redis-backed store that auto-prefixes all keys with ``notion_sync:``."""

    def __init__(self, redis_client: aioredis.Redis, prefix: str = KEY_PREFIX):
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> str | None:
        return await self._redis.get(self._key(key))

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        await self._redis.set(self._key(key), value, ex=ex)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))

    async def push(self, key: str, value: str, maxlen: int) -> None:
        """LPUSH + LTRIM in one MULTI so concurrent writers never overflow."""
        full_key = self._key(key)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.lpush(full_key, value)
            pipe.ltrim(full_key, 0, maxlen - 1)
            await pipe.execute()

    async def range(self, key: str, count: int) -> list[str]:
        if count <= 0:
            return []
        return await self._redis.lrange(self._key(key), 0, count - 1)

    async def ping(self) -> bool:
        return bool(await self._redis.ping())


# ── In-process implementation ───────────────────────────────────────────────


class MemoryStore(KeyValueStore):
    """Process-local store; expiry is checked lazily on read."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, tuple[str, float | None]] = {}
        self._lists: dict[str, list[str]] = {}

    async def get(self, key: str) -> str | None:
        item = self._values.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock() >= expires_at:
            del self._values[key]
            return None
        return value

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        expires_at = self._clock() + ex if ex is not None else None
        self._values[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._lists.pop(key, None)

    async def push(self, key: str, value: str, maxlen: int) -> None:
        items = self._lists.setdefault(key, [])
        items.insert(0, value)
        del items[maxlen:]

    async def range(self, key: str, count: int) -> list[str]:
        if count <= 0:
            return []
        return list(self._lists.get(key, [])[:count])

    async def ping(self) -> bool:
        return True
