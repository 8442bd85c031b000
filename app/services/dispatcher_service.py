import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple

import redis
import structlog

from app.config import JOB_HANDLER_TIMEOUT_S
from app.models.enums import JobStatus, JobType
from app.services.job_service import JobService
from app.services.queue_service import QueueError, RedisJobQueue

logger = structlog.get_logger()

Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]

class DispatchOutcome(str, Enum):
    NO_JOB = "NO_JOB"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    NO_HANDLER = "NO_HANDLER"
    COMPLETED = "COMPLETED"
    RETRY = "RETRY"
    FAILED = "FAILED"

@dataclass
class DispatchResult:
    outcome: DispatchOutcome
    job_id: Optional[int] = None
    job_type: Optional[str] = None
    status: Optional[str] = None
    attempt: Optional[int] = None
    max_attempts: Optional[int] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    duration_ms: Optional[int] = None

    def to_response(self) -> Tuple[int, Dict[str, Any]]:
        """HTTP status code and JSON body reported by the worker endpoint."""
        if self.outcome == DispatchOutcome.NO_JOB:
            return 200, {"message": "No jobs to process", "processed": False}
        if self.outcome == DispatchOutcome.NOT_FOUND:
            return 404, {"error": "Job not found", "jobId": self.job_id}
        if self.outcome == DispatchOutcome.ALREADY_PROCESSED:
            return 200, {"message": "Job already processed", "jobId": self.job_id, "status": self.status}
        if self.outcome == DispatchOutcome.NO_HANDLER:
            return 400, {"error": "No handler for job type", "jobType": self.job_type}
        if self.outcome == DispatchOutcome.RETRY:
            return 200, {
                "message": "Job failed, will retry",
                "jobId": self.job_id,
                "attempt": self.attempt,
                "maxAttempts": self.max_attempts,
                "error": self.error,
            }
        if self.outcome == DispatchOutcome.FAILED:
            return 200, {"message": "Job failed permanently", "jobId": self.job_id, "error": self.error}
        return 200, {
            "message": "Job completed",
            "jobId": self.job_id,
            "result": self.result,
            "duration": self.duration_ms,
        }

class DispatcherService:
    """Processes at most one job per call to :meth:`dispatch_next`.

    Handler failures (exceptions and timeouts) always end in a retry or a
    permanent failure, never in a job left in ``processing``. Store and
    transport errors raised outside the handler propagate to the caller; if
    one hits before the handler runs, the popped id is pushed back first.
    """

    def __init__(
        self,
        jobs: JobService,
        queue: RedisJobQueue,
        handlers: Mapping[JobType, Handler],
        handler_timeout_s: float = JOB_HANDLER_TIMEOUT_S,
    ):
        self.jobs = jobs
        self.queue = queue
        self.handlers = handlers
        self.handler_timeout_s = handler_timeout_s

    async def dispatch_next(self) -> DispatchResult:
        job_id = await self.queue.dequeue()
        if job_id is None:
            return DispatchResult(DispatchOutcome.NO_JOB)

        job = None
        try:
            job = self.jobs.get_job(job_id)
            if job is None:
                logger.warning("Dequeued job has no row", job_id=job_id)
                return DispatchResult(DispatchOutcome.NOT_FOUND, job_id=job_id)

            # duplicate delivery: another invocation already advanced this job
            if job.status != JobStatus.PENDING:
                logger.info("Job already processed", job_id=job_id, status=job.status.value)
                return DispatchResult(DispatchOutcome.ALREADY_PROCESSED, job_id=job_id, status=job.status.value)

            await self.queue.mark_as_processing(job.id)
            self.jobs.repo.transition(job, JobStatus.PROCESSING)
        except Exception:
            await self._release(job_id, job.priority if job is not None else 0)
            raise

        log = logger.bind(job_id=job.id, job_type=job.type.value, attempt=job.attempts + 1)

        handler = self.handlers.get(job.type)
        if handler is None:
            error = f"No handler for job type: {job.type.value}"
            self.jobs.repo.transition(job, JobStatus.FAILED, error=error)
            await self.queue.remove_from_processing(job.id)
            log.error("No handler registered")
            return DispatchResult(DispatchOutcome.NO_HANDLER, job_id=job.id, job_type=job.type.value, error=error)

        log.info("Job started")
        t0 = time.monotonic()
        result, error = await self._run(handler, dict(job.payload or {}))
        duration_ms = int((time.monotonic() - t0) * 1000)

        if error is None:
            self.jobs.repo.transition(job, JobStatus.COMPLETED, result=result)
            await self.queue.remove_from_processing(job.id)
            log.info("Job completed", duration_ms=duration_ms)
            return DispatchResult(
                DispatchOutcome.COMPLETED, job_id=job.id, job_type=job.type.value,
                result=result, duration_ms=duration_ms,
            )

        retried = await self.jobs.fail_attempt(job, error)
        if retried:
            log.warning("Job failed, will retry", error=error, max_attempts=job.max_attempts)
            return DispatchResult(
                DispatchOutcome.RETRY, job_id=job.id, job_type=job.type.value,
                attempt=job.attempts, max_attempts=job.max_attempts, error=error, duration_ms=duration_ms,
            )

        log.error("Job failed permanently", error=error, attempts=job.attempts)
        return DispatchResult(
            DispatchOutcome.FAILED, job_id=job.id, job_type=job.type.value,
            attempt=job.attempts, max_attempts=job.max_attempts, error=error, duration_ms=duration_ms,
        )

    async def _release(self, job_id: int, priority: int):
        """Give back an id popped from the queue whose job never reached its handler."""
        try:
            await self.queue.remove_from_processing(job_id)
            await self.queue.enqueue(job_id, priority)
        except (QueueError, redis.exceptions.RedisError) as e:
            # the stale-marker sweep re-pushes it once JOB_STUCK_SECONDS have passed
            logger.warning("Could not requeue job after dispatch error", job_id=job_id, error=str(e))
            return
        logger.warning("Requeued job after dispatch error", job_id=job_id)

    async def _run(self, handler: Handler, payload: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """Run a handler under the timeout. Returns (result, None) or (None, error message)."""
        try:
            result = await asyncio.wait_for(handler(payload), timeout=self.handler_timeout_s)
        except asyncio.TimeoutError:
            # wait_for has already cancelled the handler task
            return None, f"Handler timed out after {self.handler_timeout_s:g}s"
        except Exception as e:
            logger.debug("Handler raised", exc_info=True)
            return None, str(e) or e.__class__.__name__

        if result is not None and not isinstance(result, dict):
            result = {"value": result}
        return result, None
