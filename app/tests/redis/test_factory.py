"""
Tests for the Redis cache factory.
"""

import pytest
from unittest.mock import AsyncMock, patch

from app.libs.redis.cache import RedisCache
from app.libs.redis.factory import RedisCacheFactory


@pytest.fixture(autouse=True)
def reset_factory():
    RedisCacheFactory._connection_manager = None
    RedisCacheFactory._caches = {}
    RedisCacheFactory._initialized = False
    yield
    RedisCacheFactory._connection_manager = None
    RedisCacheFactory._caches = {}
    RedisCacheFactory._initialized = False


@pytest.mark.asyncio
@patch("app.libs.redis.factory.settings")
async def test_initialize_disabled(mock_settings):
    mock_settings.redis_enabled = False

    assert await RedisCacheFactory.initialize() is False
    assert await RedisCacheFactory.create_cache("matching:results") is None


@pytest.mark.asyncio
@patch("app.libs.redis.factory.RedisConnectionManager")
async def test_initialize_success(mock_manager_cls):
    mock_manager_cls.return_value.initialize = AsyncMock(return_value=True)

    assert await RedisCacheFactory.initialize() is True
    assert await RedisCacheFactory.initialize() is True
    mock_manager_cls.return_value.initialize.assert_awaited_once()


@pytest.mark.asyncio
@patch("app.libs.redis.factory.RedisConnectionManager")
async def test_initialize_failure(mock_manager_cls):
    mock_manager_cls.return_value.initialize = AsyncMock(return_value=False)

    assert await RedisCacheFactory.initialize() is False
    assert await RedisCacheFactory.create_cache("matching:results") is None


@pytest.mark.asyncio
@patch("app.libs.redis.factory.RedisConnectionManager")
async def test_create_cache_is_cached_per_namespace(mock_manager_cls):
    mock_manager_cls.return_value.initialize = AsyncMock(return_value=True)

    first = await RedisCacheFactory.create_cache("matching:results", ttl=1800)
    second = await RedisCacheFactory.create_cache("matching:results")
    other = await RedisCacheFactory.create_cache("matching:embeddings")

    assert isinstance(first, RedisCache)
    assert first is second
    assert other is not first
    assert first._namespace == "matching:results"
    assert first._ttl == 1800


@pytest.mark.asyncio
@patch("app.libs.redis.factory.RedisConnectionManager")
async def test_close_resets_state(mock_manager_cls):
    manager = mock_manager_cls.return_value
    manager.initialize = AsyncMock(return_value=True)
    manager.close = AsyncMock()
    await RedisCacheFactory.create_cache("matching:results")

    await RedisCacheFactory.close()

    manager.close.assert_awaited_once()
    assert RedisCacheFactory._caches == {}
    assert RedisCacheFactory._initialized is False


@pytest.mark.asyncio
async def test_ping_without_connection():
    assert await RedisCacheFactory.ping() is False
