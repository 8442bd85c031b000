import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.config import CRON_SECRET, DATABASE_URL, WORKER_SECRET
from app.repositories.job_repository import JobRepository
from app.services.job_service import JobService
from app.services.queue_service import RedisJobQueue

if DATABASE_URL.startswith("sqlite"):
    # single shared connection so in-memory databases survive across sessions
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

def get_session():
    with Session(engine) as session:
        yield session

def open_session() -> Session:
    """Session for code running outside a request (job handlers, Celery tasks)."""
    return Session(engine)

def get_queue(request: Request) -> RedisJobQueue:
    return request.app.state.queue

def get_job_service(
    session: Session = Depends(get_session),
    queue: RedisJobQueue = Depends(get_queue),
) -> JobService:
    return JobService(JobRepository(session), queue)

def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    # set by the auth gateway in front of this service
    return x_user_id or None

def require_user(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    if not user_id:
        raise HTTPException(401, "Unauthorized")
    return user_id

def _is_worker_secret(authorization: Optional[str]) -> bool:
    if not authorization or not authorization.startswith("Bearer "):
        return False
    token = authorization[len("Bearer "):].strip()
    return any(hmac.compare_digest(token, s) for s in (WORKER_SECRET, CRON_SECRET) if s)

def require_worker_or_user(
    authorization: Optional[str] = Header(default=None),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> str:
    """Scheduler bearer secret, or a signed-in user as the manual-testing fallback."""
    if _is_worker_secret(authorization):
        return "worker"
    if user_id:
        return user_id
    raise HTTPException(401, "Unauthorized")
