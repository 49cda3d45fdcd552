"""
Factory for Redis cache instances.

Keeps one connection manager per process and hands out one ``RedisCache``
per namespace, configured from application settings.
"""

from typing import Dict, Optional

from loguru import logger

from app.core.config import settings
from app.libs.redis.cache import RedisCache
from app.libs.redis.connection import RedisConnectionManager
from app.utils.circuit_breaker import CircuitBreaker


class RedisCacheFactory:
    """Creates and tracks Redis caches sharing a single connection manager."""

    _connection_manager: Optional[RedisConnectionManager] = None
    _caches: Dict[str, RedisCache] = {}
    _initialized = False

    @classmethod
    async def initialize(cls) -> bool:
        """Connect to Redis. Returns False when Redis is disabled or unreachable."""
        if cls._initialized:
            return True

        if not settings.redis_enabled:
            logger.info("Redis disabled by configuration, using local caches only")
            return False

        if cls._connection_manager is None:
            cls._connection_manager = RedisConnectionManager(
                host=settings.redis_host,
                port=settings.redis_port,
                db=settings.redis_db,
                password=settings.redis_password,
                max_connections=10,
                connection_timeout=2.0,
                health_check_interval=30,
                circuit_breaker=CircuitBreaker(name="redis", failure_threshold=5, reset_timeout=30),
            )

        success = await cls._connection_manager.initialize()
        if success:
            cls._initialized = True
            logger.info("Redis cache factory initialized")
        else:
            logger.error("Failed to initialize Redis cache factory")
        return success

    @classmethod
    async def create_cache(
        cls,
        namespace: str,
        ttl: int = 300,
        max_retries: int = 3,
    ) -> Optional[RedisCache]:
        """
        Return the cache for ``namespace``, creating it on first use.

        Returns:
            The cache, or None if Redis could not be initialised
        """
        if namespace in cls._caches:
            return cls._caches[namespace]

        if not cls._initialized and not await cls.initialize():
            return None

        cache = RedisCache(
            connection_manager=cls._connection_manager,
            ttl=ttl,
            max_retries=max_retries,
            initial_backoff_ms=100,
            max_backoff_ms=30000,
            namespace=namespace,
        )
        cls._caches[namespace] = cache
        logger.info("Created Redis cache", namespace=namespace, default_ttl=ttl)
        return cache

    @classmethod
    async def ping(cls) -> bool:
        if cls._connection_manager is None:
            return False
        return await cls._connection_manager.ping()

    @classmethod
    async def close(cls) -> None:
        if cls._connection_manager is not None:
            await cls._connection_manager.close()
        cls._connection_manager = None
        cls._caches = {}
        cls._initialized = False
        logger.info("Closed Redis connections")
