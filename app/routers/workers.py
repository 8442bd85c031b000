import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import get_job_service, get_queue, require_worker_or_user
from app.schemas.jobs import PendingJobSummary
from app.services.dispatcher_service import DispatcherService
from app.services.job_service import JobService
from app.services.queue_service import RedisJobQueue
from worker.handlers import HANDLERS

logger = structlog.get_logger()

router = APIRouter()

def get_handlers():
    return HANDLERS

@router.post("/workers")
async def run_worker(
    caller: str = Depends(require_worker_or_user),
    jobs: JobService = Depends(get_job_service),
    queue: RedisJobQueue = Depends(get_queue),
    handlers=Depends(get_handlers),
):
    """Process at most one queued job. Called by the scheduler on every tick."""
    dispatcher = DispatcherService(jobs, queue, handlers)
    try:
        result = await dispatcher.dispatch_next()
    except Exception:
        logger.exception("Worker processing failed", caller=caller)
        return JSONResponse({"error": "Worker processing failed"}, status_code=500)

    status_code, body = result.to_response()
    return JSONResponse(body, status_code=status_code)

@router.get("/workers")
async def queue_status(
    include_jobs: bool = False,
    caller: str = Depends(require_worker_or_user),
    jobs: JobService = Depends(get_job_service),
    queue: RedisJobQueue = Depends(get_queue),
):
    try:
        pending = await queue.size()
        processing = await queue.processing_count()
    except Exception:
        logger.exception("Failed to get queue status")
        return JSONResponse({"error": "Failed to get queue status"}, status_code=500)

    body = {"queue": {"pending": pending, "processing": processing}}
    if include_jobs:
        body["pendingJobs"] = [
            PendingJobSummary.model_validate(job).model_dump(mode="json")
            for job in jobs.repo.list_pending(limit=10)
        ]
    return body
