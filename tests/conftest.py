import heapq
import itertools
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel, Session  # noqa: E402

from app import dependencies  # noqa: E402
from app.models import document, job, social  # noqa: E402,F401
from app.repositories.job_repository import JobRepository  # noqa: E402
from app.services.job_service import JobService  # noqa: E402
from app.services.queue_service import queue_score  # noqa: E402


class InMemoryJobQueue:
    """Transport double with the same priority/FIFO ordering as RedisJobQueue."""

    def __init__(self):
        self._heap = []
        self._seq = itertools.count(1)
        self.processing = set()

    async def connect(self):
        return self

    async def close(self):
        pass

    async def ping(self):
        return True

    async def enqueue(self, job_id, priority=0):
        heapq.heappush(self._heap, (queue_score(priority, next(self._seq)), job_id))

    async def dequeue(self):
        if not self._heap:
            return None
        return heapq.heappop(self._heap)[1]

    async def is_queued(self, job_id):
        return any(queued == job_id for _, queued in self._heap)

    async def mark_as_processing(self, job_id):
        self.processing.add(job_id)

    async def remove_from_processing(self, job_id):
        self.processing.discard(job_id)

    async def size(self):
        return len(self._heap)

    async def processing_count(self):
        return len(self.processing)

    def queued_ids(self):
        return [job_id for _, job_id in sorted(self._heap)]


@pytest.fixture
def engine():
    SQLModel.metadata.create_all(dependencies.engine)
    yield dependencies.engine
    SQLModel.metadata.drop_all(dependencies.engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def queue():
    return InMemoryJobQueue()


@pytest.fixture
def repo(session):
    return JobRepository(session)


@pytest.fixture
def jobs(repo, queue):
    return JobService(repo, queue)


@pytest.fixture
def client(session, queue):
    from app.main import app

    app.dependency_overrides[dependencies.get_session] = lambda: session
    app.dependency_overrides[dependencies.get_queue] = lambda: queue
    yield TestClient(app)
    app.dependency_overrides.clear()
