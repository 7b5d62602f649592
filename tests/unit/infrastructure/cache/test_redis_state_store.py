# nosec B101


import pytest
from unittest.mock import AsyncMock

from infrastructure.cache.redis_cache import RedisStateStore


@pytest.mark.asyncio
async def test_load_returns_stored_payload():
    mock_redis = AsyncMock()
    mock_redis.get.return_value = '{"selected_code": "EUR"}'
    store = RedisStateStore(redis_client=mock_redis)

    result = await store.load()

    assert result == '{"selected_code": "EUR"}'
    mock_redis.get.assert_called_once_with('currency:state')


@pytest.mark.asyncio
async def test_load_decodes_bytes():
    mock_redis = AsyncMock()
    mock_redis.get.return_value = b'{"selected_code": "GBP"}'
    store = RedisStateStore(redis_client=mock_redis)

    assert await store.load() == '{"selected_code": "GBP"}'


@pytest.mark.asyncio
async def test_load_missing_key_returns_none():
    mock_redis = AsyncMock()
    mock_redis.get.return_value = None
    store = RedisStateStore(redis_client=mock_redis)

    assert await store.load() is None


@pytest.mark.asyncio
async def test_save_writes_without_expiry():
    mock_redis = AsyncMock()
    store = RedisStateStore(redis_client=mock_redis, key='renthub:currency')

    await store.save('{"selected_code": "RON"}')

    mock_redis.set.assert_called_once_with('renthub:currency', '{"selected_code": "RON"}')
    mock_redis.setex.assert_not_called()


@pytest.mark.asyncio
async def test_redis_errors_propagate():
    mock_redis = AsyncMock()
    mock_redis.get.side_effect = ConnectionError('Redis connection failed')
    store = RedisStateStore(redis_client=mock_redis)

    with pytest.raises(ConnectionError):
        await store.load()


@pytest.mark.asyncio
async def test_close_closes_client():
    mock_redis = AsyncMock()
    store = RedisStateStore(redis_client=mock_redis)

    await store.close()

    mock_redis.aclose.assert_awaited_once()
