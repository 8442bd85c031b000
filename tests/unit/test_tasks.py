import time

import pytest

from app.config import SYSTEM_USER_ID
from app.models.enums import JobStatus, JobType
from worker import tasks

@pytest.fixture
def task_queue(queue, mocker):
    mocker.patch("worker.tasks.RedisJobQueue", return_value=queue)
    return queue

def test_dispatch_task_with_empty_queue(session, task_queue):
    assert tasks.dispatch_next_job() == {"message": "No jobs to process", "processed": False}

def test_fetch_social_metrics_creates_system_job(session, task_queue, repo):
    job_id = tasks.fetch_social_metrics()

    job = repo.get(job_id)
    assert job.type == JobType.SOCIAL_METRICS_FETCH
    assert job.user_id == SYSTEM_USER_ID
    assert task_queue.queued_ids() == [job_id]

def test_enqueue_scheduled_jobs_task(session, task_queue, repo):
    job = repo.create("user-1", JobType.SCHEDULED_PUBLISH, {}, scheduled_for=time.time() - 1)

    assert tasks.enqueue_scheduled_jobs() == 1
    assert task_queue.queued_ids() == [job.id]

def test_reap_stuck_jobs_task(session, task_queue, repo):
    job = repo.create("user-1", JobType.WEB_SCRAPING, {})
    repo.transition(job, JobStatus.PROCESSING)
    job.started_at = 0
    repo._save(job)

    assert tasks.reap_stuck_jobs() == {"retried": 1, "failed": 0}
    assert repo.get(job.id).status == JobStatus.PENDING
