"""
Redis cache implementation.

Stores JSON-serialized values under namespaced keys with a per-entry TTL.
Entries can carry tags; each tag is a Redis set (``<namespace>:tag:<tag>``)
holding the keys tagged with it, so ``invalidate(tag)`` can drop every entry
sharing the tag in one call. Failed commands are retried with jittered
exponential backoff. Reads and writes never raise: a failure is a miss or
``False``. ``invalidate`` raises ``RedisOperationError`` when the tag could
not be cleared.
"""

import asyncio
import random
import time
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from app.log.logging import logger

from app.libs.redis.connection import RedisConnectionManager
from app.libs.redis.serialization import RedisSerializer
from app.libs.redis.errors import (
    RedisCircuitBreakerOpenError,
    RedisOperationError,
    RedisSerializationError,
)

T = TypeVar("T")

# Keys removed per DEL command during tag invalidation
DELETE_BATCH_SIZE = 100


class RedisCache:
    """Redis-backed tagged cache with retries."""

    def __init__(
        self,
        connection_manager: RedisConnectionManager,
        ttl: int = 300,
        max_retries: int = 3,
        initial_backoff_ms: int = 100,
        max_backoff_ms: int = 30000,
        namespace: Optional[str] = None,
    ):
        """
        Args:
            connection_manager: Redis connection manager
            ttl: Default TTL in seconds for entries set without one
            max_retries: Retry attempts after the first failure
            initial_backoff_ms: First retry delay in milliseconds
            max_backoff_ms: Retry delay cap in milliseconds
            namespace: Optional prefix for every key
        """
        self._connection_manager = connection_manager
        self._ttl = ttl
        self._max_retries = max_retries
        self._initial_backoff_ms = initial_backoff_ms
        self._max_backoff_ms = max_backoff_ms
        self._namespace = namespace

        logger.info(
            "Initialized Redis cache",
            default_ttl=ttl,
            max_retries=max_retries,
            namespace=namespace or "None",
        )

    def _add_namespace(self, key: str) -> str:
        if self._namespace:
            return f"{self._namespace}:{key}"
        return key

    def _tag_key(self, tag: str) -> str:
        return self._add_namespace(f"tag:{tag}")

    async def _with_retry(
        self,
        operation: str,
        key: str,
        func: Callable[[Any], Awaitable[T]],
        default: T,
    ) -> T:
        """Run ``func(redis)`` with retries; return ``default`` when it keeps failing."""
        retry_count = 0
        backoff_ms = self._initial_backoff_ms

        while True:
            try:
                redis = await self._connection_manager.get_redis()
                result = await func(redis)
                await self._connection_manager.report_success()
                return result

            except RedisCircuitBreakerOpenError:
                logger.warning(f"Circuit breaker open, skipping cache {operation} for key: {key}")
                return default

            except Exception as e:
                retry_count += 1
                if retry_count > self._max_retries:
                    logger.error(
                        f"Cache {operation} failed after {retry_count} attempts: {str(e)}",
                        key=key,
                    )
                    await self._connection_manager.report_failure()
                    return default

                sleep_time = (backoff_ms / 1000.0) * random.uniform(0.8, 1.2)
                logger.warning(
                    f"Redis {operation} error (attempt {retry_count}/{self._max_retries}), "
                    f"retrying in {sleep_time:.2f}s: {str(e)}"
                )
                await asyncio.sleep(sleep_time)
                backoff_ms = min(backoff_ms * 2, self._max_backoff_ms)

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on miss, expiry or error."""
        namespaced_key = self._add_namespace(key)
        start_time = time.time()

        async def _get(redis):
            data = await redis.get(namespaced_key)
            if data is None:
                logger.debug(f"Cache miss for key: {key}")
                return None
            try:
                value = RedisSerializer.deserialize(data)
            except RedisSerializationError as e:
                logger.error(f"Corrupted cache entry for key {key}, deleting: {str(e)}")
                await redis.delete(namespaced_key)
                return None
            logger.debug(f"Cache hit for key: {key} in {time.time() - start_time:.6f}s")
            return value

        return await self._with_retry("get", key, _get, None)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
    ) -> bool:
        """
        Store a value with a TTL and optional tags.

        Returns:
            True if stored, False on serialization or Redis failure
        """
        namespaced_key = self._add_namespace(key)
        ttl = ttl or self._ttl
        tags = list(dict.fromkeys(tags))

        try:
            data = RedisSerializer.serialize(value)
        except RedisSerializationError as e:
            logger.error(f"Failed to serialize cache data for key {key}: {str(e)}")
            return False

        async def _set(redis):
            pipeline = redis.pipeline(transaction=False)
            pipeline.setex(namespaced_key, ttl, data)
            for tag in tags:
                tag_key = self._tag_key(tag)
                pipeline.sadd(tag_key, namespaced_key)
                # The tag set lives as long as its longest-lived member (Redis >= 7)
                pipeline.expire(tag_key, ttl, nx=True)
                pipeline.expire(tag_key, ttl, gt=True)
            await pipeline.execute()
            logger.debug(f"Stored cache entry for key: {key}", ttl=ttl, tags=tags)
            return True

        return await self._with_retry("set", key, _set, False)

    async def delete(self, key: str) -> bool:
        namespaced_key = self._add_namespace(key)

        async def _delete(redis):
            await redis.delete(namespaced_key)
            logger.debug(f"Deleted cache entry for key: {key}")
            return True

        return await self._with_retry("delete", key, _delete, False)

    async def invalidate(self, tag: str) -> int:
        """
        Delete every entry tagged with ``tag``.

        Returns:
            Number of entries removed

        Raises:
            RedisOperationError: If the circuit is open or every retry failed
        """
        tag_key = self._tag_key(tag)

        async def _invalidate(redis):
            members = list(await redis.smembers(tag_key))
            for start in range(0, len(members), DELETE_BATCH_SIZE):
                await redis.delete(*members[start:start + DELETE_BATCH_SIZE])
            await redis.delete(tag_key)
            logger.info(f"Invalidated {len(members)} cache entries for tag {tag}")
            return len(members)

        removed = await self._with_retry("invalidate", tag, _invalidate, None)
        if removed is None:
            raise RedisOperationError(f"Could not invalidate tag {tag}")
        return removed
