from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.dependencies import get_job_service, get_session, require_user
from app.models.enums import JobType, PublishedPostStatus, SocialPlatform
from app.repositories.post_repository import PostRepository
from app.schemas.jobs import PublishPostRequest
from app.services.job_service import JobService

router = APIRouter()

PUBLISH_JOB_TYPES = {
    SocialPlatform.INSTAGRAM: JobType.SOCIAL_PUBLISH_INSTAGRAM,
    SocialPlatform.FACEBOOK: JobType.SOCIAL_PUBLISH_FACEBOOK,
}

@router.post("/posts/{post_id}/publish", status_code=202)
async def publish_post(
    post_id: int,
    req: PublishPostRequest = PublishPostRequest(),
    user_id: str = Depends(require_user),
    session: Session = Depends(get_session),
    jobs: JobService = Depends(get_job_service),
):
    post = PostRepository(session).get_for_user(post_id, user_id)
    if not post:
        raise HTTPException(404, "Post not found")
    if post.status == PublishedPostStatus.PUBLISHED:
        raise HTTPException(409, "Post already published")

    job_id = await jobs.create_job(
        user_id,
        PUBLISH_JOB_TYPES[post.platform],
        {"published_post_id": post_id, "user_id": user_id},
        priority=req.priority,
        scheduled_for=req.scheduled_for,
    )
    return {"jobId": job_id, "status": "pending", "scheduledFor": req.scheduled_for}
