from celery import Celery
from app.config import (
    REDIS_URL,
    DISPATCH_INTERVAL_SECONDS,
    SCHEDULED_CHECK_INTERVAL_SECONDS,
    SANITY_CHECK_INTERVAL_SECONDS,
    METRICS_FETCH_INTERVAL_SECONDS,
)
from app.logging_config import configure_logging

configure_logging()

celery_app = Celery("content_jobs", broker=REDIS_URL, backend=REDIS_URL, include=["worker.tasks"])

# Beat is the scheduler: every tick runs one dispatcher invocation.
celery_app.conf.beat_schedule = {
    "dispatch-next-job": {
        "task": "worker.tasks.dispatch_next_job",
        "schedule": DISPATCH_INTERVAL_SECONDS,
        # a late tick is useless once the next one has fired
        "options": {"expires": DISPATCH_INTERVAL_SECONDS},
    },
    "enqueue-scheduled-jobs": {
        "task": "worker.tasks.enqueue_scheduled_jobs",
        "schedule": SCHEDULED_CHECK_INTERVAL_SECONDS,
    },
    "reap-stuck-jobs": {
        "task": "worker.tasks.reap_stuck_jobs",
        "schedule": SANITY_CHECK_INTERVAL_SECONDS,
    },
    "fetch-social-metrics": {
        "task": "worker.tasks.fetch_social_metrics",
        "schedule": METRICS_FETCH_INTERVAL_SECONDS,
    },
}

celery_app.conf.task_acks_late = True
celery_app.conf.worker_prefetch_multiplier = 1