import time
from typing import Any, Dict, List, Optional, Union

import structlog

from app.config import JOB_DEFAULT_MAX_ATTEMPTS, JOB_STUCK_SECONDS
from app.models.enums import JobStatus, JobType
from app.models.job import Job
from app.repositories.job_repository import JobRepository
from app.schemas.payloads import validate_payload
from app.services.queue_service import QueueError, RedisJobQueue

logger = structlog.get_logger()

class UnknownJobTypeError(ValueError):
    def __init__(self, job_type: str):
        super().__init__(f"Unknown job type: {job_type}")
        self.job_type = job_type

class JobNotFoundError(LookupError):
    pass

class JobService:
    """Durable side of the queue: job rows and their lifecycle.

    This is the only entry point feature code uses to schedule asynchronous
    work. The row is committed before its id is pushed to the transport, so a
    dispatcher can never dequeue an id whose row does not exist yet.
    """

    def __init__(self, repo: JobRepository, queue: RedisJobQueue):
        self.repo = repo
        self.queue = queue

    async def create_job(
        self,
        user_id: str,
        job_type: Union[JobType, str],
        payload: Dict[str, Any],
        priority: Optional[int] = None,
        max_attempts: Optional[int] = None,
        scheduled_for: Optional[float] = None,
    ) -> int:
        try:
            job_type = JobType(job_type)
        except ValueError:
            raise UnknownJobTypeError(str(job_type))

        job = self.repo.create(
            user_id=user_id,
            job_type=job_type,
            payload=validate_payload(job_type, payload),
            priority=priority or 0,
            max_attempts=max_attempts or JOB_DEFAULT_MAX_ATTEMPTS,
            scheduled_for=scheduled_for,
        )
        logger.info("Job created", job_id=job.id, job_type=job_type.value, user_id=user_id,
                    priority=job.priority, scheduled_for=scheduled_for)

        if scheduled_for is None or scheduled_for <= time.time():
            await self._push(job)
        return job.id

    def get_job(self, job_id: int) -> Optional[Job]:
        return self.repo.get(job_id)

    def update_job_status(
        self,
        job_id: int,
        status: JobStatus,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> Job:
        job = self._require(job_id)
        return self.repo.transition(job, status, result=result, error=error)

    def increment_job_attempts(self, job_id: int) -> Job:
        return self.repo.increment_attempts(self._require(job_id))

    def list_user_jobs(
        self,
        user_id: str,
        status: Optional[JobStatus] = None,
        job_type: Optional[JobType] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Job]:
        return self.repo.list_for_user(user_id, status=status, job_type=job_type, limit=limit, offset=offset)

    async def fail_attempt(self, job: Job, error: str) -> bool:
        """Record a failed processing attempt. Returns True if the job was requeued.

        Retries while ``attempts + 1 < max_attempts``; otherwise the job fails
        permanently with ``error`` preserved. Either way the processing
        bookkeeping entry is cleared.
        """
        should_retry = job.attempts + 1 < job.max_attempts
        self.repo.increment_attempts(job)

        if should_retry:
            self.repo.transition(job, JobStatus.PENDING)
            await self.queue.remove_from_processing(job.id)
            await self._push(job)
            return True

        self.repo.transition(job, JobStatus.FAILED, error=error)
        await self.queue.remove_from_processing(job.id)
        return False

    async def enqueue_due_scheduled_jobs(self, now: Optional[float] = None) -> int:
        """Push pending jobs that are due and not in the transport.

        Covers scheduled jobs, jobs whose first push failed, and jobs whose id
        was popped by a dispatcher that died before moving them to processing.
        """
        now = now or time.time()
        pushed = 0
        for job in self.repo.due_for_enqueue(now, stale_before=now - JOB_STUCK_SECONDS):
            if job.enqueued_at is not None and await self.queue.is_queued(job.id):
                continue
            if await self._push(job):
                pushed += 1
        if pushed:
            logger.info("Enqueued due jobs", count=pushed)
        return pushed

    async def reap_stuck_jobs(self, now: Optional[float] = None) -> Dict[str, int]:
        """Treat jobs stuck in processing (dispatcher died mid-job) as a failed attempt."""
        now = now or time.time()
        counts = {"retried": 0, "failed": 0}
        for job in self.repo.stuck_processing(now - JOB_STUCK_SECONDS):
            error = f"No progress for more than {JOB_STUCK_SECONDS}s while processing"
            retried = await self.fail_attempt(job, error)
            counts["retried" if retried else "failed"] += 1
            logger.warning("Reaped stuck job", job_id=job.id, job_type=job.type.value,
                           attempts=job.attempts, retried=retried)
        return counts

    async def _push(self, job: Job) -> bool:
        try:
            await self.queue.enqueue(job.id, job.priority)
        except QueueError:
            # the row stays pending with no enqueue marker; the due-job sweep picks it up
            logger.warning("Job left for the due-job sweep", job_id=job.id)
            return False
        self.repo.mark_enqueued(job)
        return True

    def _require(self, job_id: int) -> Job:
        job = self.repo.get(job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return job
