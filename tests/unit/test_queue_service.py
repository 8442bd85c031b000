import pytest
import redis
from unittest.mock import AsyncMock

from app.services.queue_service import QueueError, RedisJobQueue, queue_score

@pytest.fixture
def redis_client():
    client = AsyncMock()
    client.incr.return_value = 7
    return client

@pytest.fixture
def redis_queue(redis_client):
    return RedisJobQueue(client=redis_client, pending_key="p", processing_key="w", sequence_key="s")

def test_queue_score_orders_priority_then_fifo():
    scores = {
        "low-first": queue_score(0, 1),
        "low-second": queue_score(0, 2),
        "high": queue_score(10, 3),
        "negative": queue_score(-1, 0),
    }
    assert sorted(scores, key=scores.get) == ["high", "low-first", "low-second", "negative"]

def test_queue_score_clamps_priority():
    assert queue_score(10_000, 1) == queue_score(1000, 1)
    assert queue_score(-10_000, 1) == queue_score(-1000, 1)

@pytest.mark.asyncio
async def test_enqueue_adds_scored_member(redis_queue, redis_client):
    await redis_queue.enqueue(42, priority=3)

    redis_client.incr.assert_awaited_once_with("s")
    redis_client.zadd.assert_awaited_once_with("p", {"42": queue_score(3, 7)})

@pytest.mark.asyncio
async def test_enqueue_wraps_redis_errors(redis_queue, redis_client):
    redis_client.zadd.side_effect = redis.exceptions.ConnectionError("refused")
    with pytest.raises(QueueError):
        await redis_queue.enqueue(42)

@pytest.mark.asyncio
async def test_dequeue_pops_lowest_score(redis_queue, redis_client):
    redis_client.zpopmin.return_value = [("42", -3e12)]
    assert await redis_queue.dequeue() == 42
    redis_client.zpopmin.assert_awaited_once_with("p", 1)

@pytest.mark.asyncio
async def test_dequeue_empty_queue(redis_queue, redis_client):
    redis_client.zpopmin.return_value = []
    assert await redis_queue.dequeue() is None

@pytest.mark.asyncio
async def test_dequeue_treats_redis_errors_as_empty(redis_queue, redis_client):
    redis_client.zpopmin.side_effect = redis.exceptions.TimeoutError("slow")
    assert await redis_queue.dequeue() is None

@pytest.mark.asyncio
async def test_processing_set_bookkeeping(redis_queue, redis_client):
    redis_client.zcard.return_value = 4
    redis_client.scard.return_value = 1

    await redis_queue.mark_as_processing(5)
    await redis_queue.remove_from_processing(5)

    redis_client.sadd.assert_awaited_once_with("w", "5")
    redis_client.srem.assert_awaited_once_with("w", "5")
    assert await redis_queue.size() == 4
    assert await redis_queue.processing_count() == 1

@pytest.mark.asyncio
async def test_close_releases_client(redis_queue, redis_client):
    await redis_queue.close()
    redis_client.aclose.assert_awaited_once()
    with pytest.raises(QueueError):
        await redis_queue.size()

@pytest.mark.asyncio
async def test_is_queued_checks_pending_set(redis_queue, redis_client):
    redis_client.zscore.side_effect = [-3e12, None]

    assert await redis_queue.is_queued(42) is True
    assert await redis_queue.is_queued(43) is False
    redis_client.zscore.assert_awaited_with("p", "43")
