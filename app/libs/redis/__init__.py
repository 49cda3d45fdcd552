"""
Redis caching package.

Tagged, namespaced Redis cache with JSON serialization, per-entry TTLs,
retries and a circuit breaker in front of the connection.
"""

from app.libs.redis.cache import RedisCache
from app.libs.redis.connection import RedisConnectionManager
from app.libs.redis.factory import RedisCacheFactory
from app.libs.redis.errors import (
    RedisError,
    RedisConnectionError,
    RedisCircuitBreakerOpenError,
    RedisSerializationError,
    RedisOperationError,
)

__all__ = [
    "RedisCache",
    "RedisConnectionManager",
    "RedisCacheFactory",
    "RedisError",
    "RedisConnectionError",
    "RedisCircuitBreakerOpenError",
    "RedisSerializationError",
    "RedisOperationError",
]
