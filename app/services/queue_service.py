from typing import Optional

import redis
import redis.asyncio as aioredis
import structlog

from app.config import QUEUE_PENDING_KEY, QUEUE_PROCESSING_KEY, QUEUE_SEQUENCE_KEY, REDIS_URL

logger = structlog.get_logger()

# Scores are `seq - priority * PRIORITY_SPAN`: ZPOPMIN yields the highest
# priority first and, within one priority, the lowest sequence number.
PRIORITY_SPAN = 10 ** 12
MAX_PRIORITY = 1000

class QueueError(RuntimeError):
    pass

def queue_score(priority: int, seq: int) -> int:
    priority = max(-MAX_PRIORITY, min(MAX_PRIORITY, int(priority)))
    return seq - priority * PRIORITY_SPAN

class RedisJobQueue:
    """Transport for job ids: a priority-ordered pending set plus an advisory processing set.

    Only ids travel through Redis; the job row in Postgres stays authoritative.
    ``dequeue`` relies on ZPOPMIN being a single atomic remove-and-return, so
    two concurrent dispatchers can never receive the same queued entry.
    """

    def __init__(
        self,
        url: str = REDIS_URL,
        client: Optional[aioredis.Redis] = None,
        pending_key: str = QUEUE_PENDING_KEY,
        processing_key: str = QUEUE_PROCESSING_KEY,
        sequence_key: str = QUEUE_SEQUENCE_KEY,
    ):
        self.url = url
        self._redis = client
        self.pending_key = pending_key
        self.processing_key = processing_key
        self.sequence_key = sequence_key

    async def connect(self):
        if self._redis is None:
            self._redis = aioredis.from_url(self.url, decode_responses=True)
        return self

    async def close(self):
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    @property
    def client(self) -> aioredis.Redis:
        if self._redis is None:
            raise QueueError("Queue is not connected")
        return self._redis

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def enqueue(self, job_id: int, priority: int = 0):
        try:
            seq = await self.client.incr(self.sequence_key)
            await self.client.zadd(self.pending_key, {str(job_id): queue_score(priority, seq)})
        except redis.exceptions.RedisError as e:
            logger.error("Failed to enqueue job", job_id=job_id, error=str(e))
            raise QueueError(f"Failed to enqueue job {job_id}") from e

    async def dequeue(self) -> Optional[int]:
        """Pop the next job id, or None when the queue is empty or unreachable."""
        try:
            popped = await self.client.zpopmin(self.pending_key, 1)
        except redis.exceptions.RedisError as e:
            logger.warning("Failed to dequeue job", error=str(e))
            return None
        if not popped:
            return None
        member, _score = popped[0]
        return int(member)

    async def is_queued(self, job_id: int) -> bool:
        return await self.client.zscore(self.pending_key, str(job_id)) is not None

    async def mark_as_processing(self, job_id: int):
        await self.client.sadd(self.processing_key, str(job_id))

    async def remove_from_processing(self, job_id: int):
        await self.client.srem(self.processing_key, str(job_id))

    async def size(self) -> int:
        return int(await self.client.zcard(self.pending_key))

    async def processing_count(self) -> int:
        return int(await self.client.scard(self.processing_key))
