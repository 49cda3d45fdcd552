"""
Database utilities for connection pooling.

Pools are created lazily per name and shared for the life of the process;
``close_all_connection_pools`` is called on application shutdown and in tests.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Dict

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from app.core.config import settings
from app.log.logging import logger

_connection_pools: Dict[str, AsyncConnectionPool] = {}
_pool_lock = asyncio.Lock()


async def get_connection_pool(pool_name: str = "default") -> AsyncConnectionPool:
    """
    Get or create a connection pool for the specified name.

    Args:
        pool_name: Name of the connection pool

    Returns:
        AsyncConnectionPool: The connection pool
    """
    async with _pool_lock:
        if pool_name not in _connection_pools:
            logger.info("Creating new connection pool", pool_name=pool_name)

            try:
                pool = AsyncConnectionPool(
                    conninfo=settings.database_url,
                    min_size=settings.db_pool_min_size,
                    max_size=settings.db_pool_max_size,
                    timeout=settings.db_pool_timeout,
                    max_idle=settings.db_pool_max_idle,
                    kwargs={"row_factory": dict_row},
                    open=False,
                    max_lifetime=settings.db_pool_max_lifetime,
                    check=AsyncConnectionPool.check_connection,
                    reconnect_timeout=30,
                )
                await pool.open()
                _connection_pools[pool_name] = pool

                logger.info(
                    "Connection pool created successfully",
                    pool_name=pool_name,
                    min_size=settings.db_pool_min_size,
                    max_size=settings.db_pool_max_size,
                )
            except Exception as e:
                logger.exception(f"Error creating connection pool: {str(e)}")
                raise

        return _connection_pools[pool_name]


@asynccontextmanager
async def get_db_connection(pool_name: str = "default"):
    """Yield a connection from the named pool."""
    start_time = time.time()
    pool = await get_connection_pool(pool_name)
    async with pool.connection() as conn:
        logger.trace(f"Connection acquired in {time.time() - start_time:.6f}s")
        yield conn


@asynccontextmanager
async def get_db_cursor(pool_name: str = "default"):
    """Yield a dict-row cursor from a pooled connection."""
    async with get_db_connection(pool_name) as conn:
        async with conn.cursor(row_factory=dict_row) as cursor:
            yield cursor


async def close_all_connection_pools() -> None:
    """Close all connection pools. Errors are logged, cleanup continues."""
    start_time = time.time()

    async with _pool_lock:
        for pool_name, pool in _connection_pools.items():
            logger.info("Closing connection pool", pool_name=pool_name)
            try:
                if not pool.closed:
                    await asyncio.wait_for(pool.close(), timeout=3.0)
            except asyncio.TimeoutError:
                logger.warning(f"Timeout while closing pool {pool_name}")
            except Exception as e:
                logger.warning(f"Error closing pool {pool_name}: {str(e)}")

        _connection_pools.clear()
        logger.debug(f"All connection pools closed in {time.time() - start_time:.6f}s")
