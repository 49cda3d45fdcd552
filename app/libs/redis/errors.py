"""
Errors raised by the Redis cache layer.

``RedisCache`` converts most of these into misses (reads) or ``False``
(writes). ``RedisOperationError`` is the exception: a failed tag invalidation
is raised so the hybrid cache can report it.
"""


class RedisError(Exception):
    """Base class for Redis cache errors."""


class RedisConnectionError(RedisError):
    """The Redis server could not be reached or the client is not initialised."""


class RedisCircuitBreakerOpenError(RedisError):
    """The Redis circuit breaker is open; the call was refused locally."""


class RedisSerializationError(RedisError):
    """A cached value could not be encoded to, or decoded from, JSON."""


class RedisOperationError(RedisError):
    """A Redis command kept failing after every retry, or the circuit was open."""
