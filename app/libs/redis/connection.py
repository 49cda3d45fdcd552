"""
Redis connection manager.

Owns the redis.asyncio client (with its connection pool), runs a periodic
health check, reconnects on failure and feeds a circuit breaker so the cache
stops hammering a Redis that is down.
"""

import asyncio
from typing import Optional

import redis.asyncio as redis

from app.core.config import settings
from app.log.logging import logger
from app.utils.circuit_breaker import CircuitBreaker
from app.libs.redis.errors import RedisCircuitBreakerOpenError, RedisConnectionError


class RedisConnectionManager:
    """Manages the Redis client, health checks and reconnection."""

    def __init__(
        self,
        host: str = settings.redis_host,
        port: int = settings.redis_port,
        db: int = settings.redis_db,
        password: Optional[str] = settings.redis_password,
        max_connections: int = 10,
        connection_timeout: float = 2.0,
        health_check_interval: int = 30,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        """
        Args:
            host: Redis server hostname
            port: Redis server port
            db: Redis database number
            password: Redis password, empty for none
            max_connections: Pool size
            connection_timeout: Socket and connect timeout in seconds
            health_check_interval: Seconds between health-check pings
            circuit_breaker: Breaker guarding Redis calls (created if not given)
        """
        self._host = host
        self._port = port
        self._db = db
        self._password = password
        self._max_connections = max_connections
        self._connection_timeout = connection_timeout
        self._health_check_interval = health_check_interval
        self._circuit_breaker = circuit_breaker or CircuitBreaker(name="redis")

        self._client: Optional[redis.Redis] = None
        self._health_check_task: Optional[asyncio.Task] = None

        logger.info(
            "Redis connection manager configured",
            host=host,
            port=port,
            db=db,
            max_connections=max_connections,
        )

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    async def initialize(self) -> bool:
        """Connect, ping and start the health check. Returns False on failure."""
        try:
            self._client = self._create_redis_client()
            await self._client.ping()
            self._start_health_check()
            logger.info("Redis connection initialized")
            return True
        except Exception as e:
            logger.error(f"Failed to initialize Redis connection: {str(e)}")
            self._client = None
            return False

    async def get_redis(self) -> redis.Redis:
        """
        Return the live client.

        Raises:
            RedisConnectionError: If the client is not initialised
            RedisCircuitBreakerOpenError: If the breaker refuses the call
        """
        if self._client is None:
            raise RedisConnectionError("Redis client not initialized")

        if not await self._circuit_breaker.is_allowed():
            raise RedisCircuitBreakerOpenError("Circuit breaker is open")

        return self._client

    async def report_success(self) -> None:
        await self._circuit_breaker.record_success()

    async def report_failure(self) -> None:
        await self._circuit_breaker.record_failure()

    async def close(self) -> None:
        if self._health_check_task:
            self._health_check_task.cancel()
            try:
                await self._health_check_task
            except asyncio.CancelledError:
                pass
            self._health_check_task = None

        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Redis connection closed")

    async def ping(self) -> bool:
        """One-off availability check used by the health-check endpoint."""
        if self._client is None:
            return False
        try:
            await self._client.ping()
            return True
        except Exception as e:
            logger.warning(f"Redis ping failed: {str(e)}")
            return False

    def _start_health_check(self) -> None:
        if self._health_check_task is None or self._health_check_task.done():
            self._health_check_task = asyncio.create_task(self._health_check_loop())
            logger.debug("Redis health check task started")

    async def _health_check_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._health_check_interval)
                if self._client:
                    await self._client.ping()
                    await self._circuit_breaker.record_success()
                    logger.debug("Redis health check successful")

            except asyncio.CancelledError:
                logger.debug("Redis health check task cancelled")
                break

            except Exception as e:
                logger.error(f"Redis health check failed: {str(e)}")
                await self._circuit_breaker.record_failure()
                if await self._try_reconnect():
                    logger.info("Redis reconnection successful")
                else:
                    logger.error("Redis reconnection failed")

    async def _try_reconnect(self) -> bool:
        try:
            if self._client:
                await self._client.aclose()
            self._client = self._create_redis_client()
            await self._client.ping()
            logger.info("Successfully reconnected to Redis")
            return True
        except Exception as e:
            logger.error(f"Failed to reconnect to Redis: {str(e)}")
            self._client = None
            await self._circuit_breaker.record_failure()
            return False

    def _create_redis_client(self) -> redis.Redis:
        """
        Build a pooled client. No I/O happens until the first command.

        Raises:
            RedisConnectionError: If the client cannot be constructed
        """
        try:
            auth = f":{self._password}@" if self._password else ""
            redis_url = f"redis://{auth}{self._host}:{self._port}/{self._db}"
            return redis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=self._max_connections,
                socket_timeout=self._connection_timeout,
                socket_connect_timeout=self._connection_timeout,
                health_check_interval=self._health_check_interval,
            )
        except Exception as e:
            logger.error(f"Error creating Redis client: {str(e)}")
            raise RedisConnectionError(f"Failed to connect to Redis: {str(e)}")
