"""
Cache stores used by the matching engine.

Both the embedding cache and the result cache depend only on the
``CacheStore`` protocol. Production wiring uses ``HybridCache`` (Redis, or an
in-process store once Redis is unavailable); tests inject an
``InMemoryCache`` with a fake clock.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Protocol, Set, Tuple

from loguru import logger

from app.core.config import settings
from app.libs.redis.cache import RedisCache
from app.libs.redis.factory import RedisCacheFactory
from app.libs.matching.exceptions import CacheInvalidationError
from app.libs.redis.errors import RedisCircuitBreakerOpenError, RedisConnectionError, RedisError


class CacheStore(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(
        self, key: str, value: Any, ttl: Optional[int] = None, tags: Iterable[str] = ()
    ) -> bool: ...

    async def delete(self, key: str) -> bool: ...

    async def invalidate(self, tag: str) -> int: ...


class InMemoryCache:
    """
    Process-local cache with per-entry TTL and tags.

    When the cache grows past ``max_size`` the oldest half of the entries is
    dropped. ``clock`` is injectable so expiry is deterministic in tests.
    """

    def __init__(
        self,
        ttl: int = 300,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: Dict[str, Tuple[Any, float, float, Tuple[str, ...]]] = {}
        self._tags: Dict[str, Set[str]] = {}
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.trace(f"Local cache miss for key: {key}")
                return None

            value, _, expires_at, _ = entry
            if self._clock() >= expires_at:
                logger.trace(f"Local cache entry expired for key: {key}")
                self._remove(key)
                return None

            logger.trace(f"Local cache hit for key: {key}")
            return value

    async def set(
        self, key: str, value: Any, ttl: Optional[int] = None, tags: Iterable[str] = ()
    ) -> bool:
        now = self._clock()
        tags = tuple(dict.fromkeys(tags))
        async with self._lock:
            if key in self._entries:
                self._remove(key)
            self._entries[key] = (value, now, now + (ttl or self._ttl), tags)
            for tag in tags:
                self._tags.setdefault(tag, set()).add(key)

            if len(self._entries) > self._max_size:
                self._evict_oldest()
        return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            self._remove(key)
        return True

    async def invalidate(self, tag: str) -> int:
        async with self._lock:
            keys = self._tags.pop(tag, set())
            for key in keys:
                self._remove(key)
        if keys:
            logger.debug(f"Local cache invalidated {len(keys)} entries for tag {tag}")
        return len(keys)

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry[3]:
            members = self._tags.get(tag)
            if members is not None:
                members.discard(key)
                if not members:
                    del self._tags[tag]

    def _evict_oldest(self) -> None:
        by_age = sorted(self._entries.items(), key=lambda item: item[1][1])
        to_remove = len(self._entries) // 2
        for key, _ in by_age[:to_remove]:
            self._remove(key)
        logger.info(f"Local cache evicted {to_remove} oldest entries")


class HybridCache:
    """
    Redis when available, local memory otherwise.

    While Redis is healthy it is the only store, so an invalidation issued by
    any worker is seen by every worker. A circuit-open or connection error
    disables Redis for this instance and the local store takes over; other
    Redis errors on reads and writes are logged and treated as a miss or an
    unstored write.
    """

    def __init__(self, namespace: str, ttl: int = 300, max_size: int = settings.local_cache_max_size):
        self._namespace = namespace
        self._ttl = ttl
        self._redis_cache: Optional[RedisCache] = None
        self._memory_cache = InMemoryCache(ttl=ttl, max_size=max_size)
        self._initialized = False

    async def initialize(self) -> None:
        if self._initialized:
            return
        try:
            self._redis_cache = await RedisCacheFactory.create_cache(
                namespace=self._namespace, ttl=self._ttl
            )
            if self._redis_cache is None:
                logger.warning(
                    "Redis unavailable, using in-memory cache only", namespace=self._namespace
                )
        except Exception as e:
            logger.exception(f"Error initializing Redis cache: {str(e)}")
        self._initialized = True

    def _disable_redis(self, e: Exception) -> None:
        logger.warning(f"Redis cache unavailable, falling back to memory cache: {str(e)}")
        self._redis_cache = None

    async def get(self, key: str) -> Optional[Any]:
        if not self._initialized:
            await self.initialize()

        if self._redis_cache is not None:
            try:
                return await self._redis_cache.get(key)
            except (RedisCircuitBreakerOpenError, RedisConnectionError) as e:
                self._disable_redis(e)
            except Exception as e:
                logger.error(f"Error retrieving from Redis cache: {str(e)}")
                return None

        return await self._memory_cache.get(key)

    async def set(
        self, key: str, value: Any, ttl: Optional[int] = None, tags: Iterable[str] = ()
    ) -> bool:
        if not self._initialized:
            await self.initialize()

        tags = tuple(tags)
        if self._redis_cache is not None:
            try:
                return await self._redis_cache.set(key, value, ttl=ttl, tags=tags)
            except (RedisCircuitBreakerOpenError, RedisConnectionError) as e:
                self._disable_redis(e)
            except Exception as e:
                logger.error(f"Error storing in Redis cache: {str(e)}")
                return False

        return await self._memory_cache.set(key, value, ttl=ttl, tags=tags)

    async def delete(self, key: str) -> bool:
        if self._redis_cache is not None:
            try:
                await self._redis_cache.delete(key)
            except Exception as e:
                logger.error(f"Error deleting from Redis cache: {str(e)}")
        return await self._memory_cache.delete(key)

    async def invalidate(self, tag: str) -> int:
        """
        Drop every entry tagged with ``tag``.

        Raises:
            CacheInvalidationError: If Redis is in use and the tag could not be cleared
        """
        if not self._initialized:
            await self.initialize()

        # entries written while Redis was disabled
        removed = await self._memory_cache.invalidate(tag)
        if self._redis_cache is None:
            return removed

        try:
            return removed + await self._redis_cache.invalidate(tag)
        except RedisError as e:
            logger.error(f"Error invalidating Redis tag {tag}: {str(e)}", namespace=self._namespace)
            raise CacheInvalidationError(f"Could not invalidate tag {tag}: {e}") from e


class BackgroundWriter:
    """
    Fire-and-forget runner for cache writes.

    Writes are scheduled as tasks so the request path never waits on them;
    a failing write is logged and dropped. ``flush()`` awaits pending writes
    (shutdown and tests).
    """

    def __init__(self, name: str = "cache"):
        self._name = name
        self._pending: Set[asyncio.Task] = set()

    def submit(self, write: Awaitable[Any], description: str = "") -> None:
        task = asyncio.create_task(self._run(write, description))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run(self, write: Awaitable[Any], description: str) -> None:
        try:
            stored = await write
            if stored is False:
                logger.warning(f"{self._name} write was not stored", target=description)
        except Exception as e:
            logger.warning(
                f"{self._name} write failed: {str(e)}",
                target=description,
                error_type=type(e).__name__,
            )

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
