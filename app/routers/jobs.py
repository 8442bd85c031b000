from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_job_service, require_user
from app.models.enums import JobStatus, JobType
from app.schemas.jobs import JobListResponse, JobOut
from app.services.job_service import JobService

router = APIRouter()

@router.get("/jobs", response_model=JobListResponse)
def list_jobs(
    status: Optional[JobStatus] = None,
    type: Optional[JobType] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(require_user),
    jobs: JobService = Depends(get_job_service),
):
    rows = jobs.list_user_jobs(user_id, status=status, job_type=type, limit=limit, offset=offset)
    return JobListResponse(jobs=[JobOut.model_validate(j) for j in rows], limit=limit, offset=offset)

@router.get("/jobs/{job_id}", response_model=JobOut)
def get_job(
    job_id: int,
    user_id: str = Depends(require_user),
    jobs: JobService = Depends(get_job_service),
):
    job = jobs.get_job(job_id)
    # other users' jobs are reported as missing
    if not job or job.user_id != user_id:
        raise HTTPException(404, "Job not found")
    return JobOut.model_validate(job)
