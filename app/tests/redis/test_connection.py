"""
Tests for the Redis connection manager.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from redis.exceptions import ConnectionError as RedisClientConnectionError

from app.libs.redis.connection import RedisConnectionManager
from app.libs.redis.errors import RedisCircuitBreakerOpenError, RedisConnectionError
from app.utils.circuit_breaker import CircuitBreaker


@pytest.fixture
def mock_redis():
    redis_mock = AsyncMock()
    redis_mock.ping.return_value = True
    return redis_mock


@pytest.fixture
def mock_circuit_breaker():
    circuit_breaker = AsyncMock(spec=CircuitBreaker)
    circuit_breaker.is_allowed.return_value = True
    return circuit_breaker


@pytest.fixture
def connection_manager(mock_circuit_breaker):
    return RedisConnectionManager(
        host="localhost",
        port=6379,
        health_check_interval=3600,
        circuit_breaker=mock_circuit_breaker,
    )


@pytest.mark.asyncio
async def test_initialize_success(connection_manager, mock_redis):
    connection_manager._create_redis_client = MagicMock(return_value=mock_redis)

    result = await connection_manager.initialize()

    assert result is True
    assert await connection_manager.get_redis() is mock_redis
    mock_redis.ping.assert_awaited_once()
    await connection_manager.close()
    mock_redis.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_initialize_failure_on_ping(connection_manager, mock_redis):
    mock_redis.ping.side_effect = RedisClientConnectionError("Failed to connect")
    connection_manager._create_redis_client = MagicMock(return_value=mock_redis)

    result = await connection_manager.initialize()

    assert result is False
    with pytest.raises(RedisConnectionError):
        await connection_manager.get_redis()


@pytest.mark.asyncio
@patch("redis.asyncio.from_url")
async def test_initialize_failure_on_client_creation(mock_from_url, connection_manager):
    mock_from_url.side_effect = ValueError("bad url")

    assert await connection_manager.initialize() is False


@pytest.mark.asyncio
async def test_get_redis_not_initialized(connection_manager):
    with pytest.raises(RedisConnectionError):
        await connection_manager.get_redis()


@pytest.mark.asyncio
async def test_get_redis_circuit_open(connection_manager, mock_circuit_breaker, mock_redis):
    connection_manager._client = mock_redis
    mock_circuit_breaker.is_allowed.return_value = False

    with pytest.raises(RedisCircuitBreakerOpenError):
        await connection_manager.get_redis()


@pytest.mark.asyncio
async def test_report_success_and_failure_feed_breaker(connection_manager, mock_circuit_breaker):
    await connection_manager.report_success()
    await connection_manager.report_failure()

    mock_circuit_breaker.record_success.assert_awaited_once()
    mock_circuit_breaker.record_failure.assert_awaited_once()


@pytest.mark.asyncio
async def test_ping(connection_manager, mock_redis):
    assert await connection_manager.ping() is False

    connection_manager._client = mock_redis
    assert await connection_manager.ping() is True

    mock_redis.ping.side_effect = RedisClientConnectionError("down")
    assert await connection_manager.ping() is False


@pytest.mark.asyncio
async def test_try_reconnect_failure_records_failure(connection_manager, mock_circuit_breaker, mock_redis):
    mock_redis.ping.side_effect = RedisClientConnectionError("down")
    connection_manager._create_redis_client = MagicMock(return_value=mock_redis)

    assert await connection_manager._try_reconnect() is False
    assert connection_manager._client is None
    mock_circuit_breaker.record_failure.assert_awaited_once()


@pytest.mark.asyncio
async def test_try_reconnect_success(connection_manager, mock_redis):
    old_client = AsyncMock()
    connection_manager._client = old_client
    connection_manager._create_redis_client = MagicMock(return_value=mock_redis)

    assert await connection_manager._try_reconnect() is True
    old_client.aclose.assert_awaited_once()
    assert connection_manager._client is mock_redis


def test_create_redis_client_builds_url():
    manager = RedisConnectionManager(host="cache", port=6380, db=2, password="secret")

    with patch("redis.asyncio.from_url") as mock_from_url:
        manager._create_redis_client()

    assert mock_from_url.call_args.args[0] == "redis://:secret@cache:6380/2"
    assert mock_from_url.call_args.kwargs["decode_responses"] is True
