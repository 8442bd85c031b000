import asyncio
import redis
from celery import Task
from sqlalchemy.exc import OperationalError

from app.celery_app import celery_app
from app.config import SYSTEM_USER_ID
from app.dependencies import open_session
from app.models.enums import JobType
from app.repositories.job_repository import JobRepository
from app.services.dispatcher_service import DispatcherService
from app.services.job_service import JobService
from app.services.queue_service import RedisJobQueue
from worker.handlers import HANDLERS

class BaseTaskWithRetry(Task):
    autoretry_for = (redis.exceptions.RedisError, OperationalError)
    retry_kwargs = {"max_retries": 10, "countdown": 3}
    retry_backoff = True

async def _run_with_jobs(fn):
    queue = await RedisJobQueue().connect()
    try:
        with open_session() as session:
            return await fn(JobService(JobRepository(session), queue))
    finally:
        await queue.close()

async def _dispatch(jobs: JobService):
    result = await DispatcherService(jobs, jobs.queue, HANDLERS).dispatch_next()
    _status, body = result.to_response()
    return body

# Not retried: a failed tick is simply followed by the next one.
@celery_app.task
def dispatch_next_job():
    return asyncio.run(_run_with_jobs(_dispatch))

@celery_app.task(base=BaseTaskWithRetry)
def enqueue_scheduled_jobs():
    return asyncio.run(_run_with_jobs(lambda jobs: jobs.enqueue_due_scheduled_jobs()))

@celery_app.task(base=BaseTaskWithRetry)
def reap_stuck_jobs():
    return asyncio.run(_run_with_jobs(lambda jobs: jobs.reap_stuck_jobs()))

@celery_app.task(base=BaseTaskWithRetry)
def fetch_social_metrics():
    return asyncio.run(_run_with_jobs(
        lambda jobs: jobs.create_job(SYSTEM_USER_ID, JobType.SOCIAL_METRICS_FETCH, {})
    ))
