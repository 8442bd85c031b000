import time
from typing import Optional, Dict, Any, List
from sqlmodel import select
from app.repositories.base_repository import BaseRepository
from app.models.job import Job
from app.models.enums import ALLOWED_TRANSITIONS, JobStatus, JobType

class InvalidTransitionError(RuntimeError):
    def __init__(self, job_id: Optional[int], current: JobStatus, target: JobStatus):
        super().__init__(f"Job {job_id}: illegal transition {current.value} -> {target.value}")
        self.job_id = job_id
        self.current = current
        self.target = target

class JobRepository(BaseRepository):
    def get(self, job_id: int) -> Optional[Job]:
        job = self.session.get(Job, job_id)
        if job is not None:
            # another session (e.g. a concurrent dispatcher) may have moved it
            self.session.refresh(job)
        return job

    def create(
        self,
        user_id: str,
        job_type: JobType,
        payload: Dict[str, Any],
        priority: int = 0,
        max_attempts: int = 3,
        scheduled_for: Optional[float] = None,
    ) -> Job:
        job = Job(
            type=job_type,
            status=JobStatus.PENDING,
            user_id=user_id,
            payload=payload,
            priority=priority,
            attempts=0,
            max_attempts=max_attempts,
            scheduled_for=scheduled_for,
        )
        return self._save(job)

    def transition(
        self,
        job: Job,
        status: JobStatus,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> Job:
        """Move a job along the status graph, or raise InvalidTransitionError.

        Entering ``processing`` stamps ``started_at``; entering a terminal
        state stamps ``completed_at`` and stores the result or the error.
        Going back to ``pending`` clears the enqueue marker so the job is
        visible to the scheduled-job sweep until it is pushed again.
        """
        if status not in ALLOWED_TRANSITIONS[job.status]:
            raise InvalidTransitionError(job.id, job.status, status)

        now = time.time()
        job.status = status
        job.updated_at = now
        if status == JobStatus.PROCESSING:
            job.started_at = now
        elif status == JobStatus.PENDING:
            job.enqueued_at = None
        elif status == JobStatus.COMPLETED:
            job.completed_at = now
            job.result = result
        elif status == JobStatus.FAILED:
            job.completed_at = now
            job.error = error
        return self._save(job)

    def increment_attempts(self, job: Job) -> Job:
        job.attempts += 1
        job.updated_at = time.time()
        return self._save(job)

    def mark_enqueued(self, job: Job) -> Job:
        job.enqueued_at = time.time()
        return self._save(job)

    def list_for_user(
        self,
        user_id: str,
        status: Optional[JobStatus] = None,
        job_type: Optional[JobType] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Job]:
        statement = select(Job).where(Job.user_id == user_id)
        if status is not None:
            statement = statement.where(Job.status == status)
        if job_type is not None:
            statement = statement.where(Job.type == job_type)
        statement = statement.order_by(Job.created_at.desc(), Job.id.desc()).offset(offset).limit(limit)
        return list(self.session.exec(statement).all())

    def list_pending(self, limit: int = 10) -> List[Job]:
        statement = (
            select(Job)
            .where(Job.status == JobStatus.PENDING)
            .order_by(Job.created_at.desc(), Job.id.desc())
            .limit(limit)
        )
        return list(self.session.exec(statement).all())

    def due_for_enqueue(self, now: float, limit: int = 100, stale_before: Optional[float] = None) -> List[Job]:
        """Pending jobs whose start time has come and that were never pushed.

        With ``stale_before``, jobs pushed before that time are included too;
        the caller checks whether their id is still in the transport.
        """
        not_pushed = Job.enqueued_at.is_(None)
        if stale_before is not None:
            not_pushed = not_pushed | (Job.enqueued_at < stale_before)
        statement = (
            select(Job)
            .where(
                Job.status == JobStatus.PENDING,
                not_pushed,
                (Job.scheduled_for.is_(None)) | (Job.scheduled_for <= now),
            )
            .order_by(Job.priority.desc(), Job.created_at)
            .limit(limit)
        )
        return list(self.session.exec(statement).all())

    def stuck_processing(self, older_than: float) -> List[Job]:
        statement = select(Job).where(
            Job.status == JobStatus.PROCESSING,
            Job.started_at < older_than,
        )
        return list(self.session.exec(statement).all())
