import time
from typing import Dict, Optional
from sqlmodel import SQLModel, Field, JSON
from app.models.enums import JobStatus, JobType

class Job(SQLModel, table=True):
    __tablename__ = "jobs"

    id: Optional[int] = Field(default=None, primary_key=True)
    type: JobType = Field(index=True)
    status: JobStatus = Field(default=JobStatus.PENDING, index=True)
    user_id: str = Field(index=True)

    payload: Dict = Field(default_factory=dict, sa_type=JSON)
    result: Optional[Dict] = Field(default=None, sa_type=JSON)
    error: Optional[str] = None

    # Higher value dequeues first
    priority: int = Field(default=0)
    attempts: int = Field(default=0)
    max_attempts: int = Field(default=3)

    scheduled_for: Optional[float] = Field(default=None, index=True)
    enqueued_at: Optional[float] = None
    started_at: Optional[float] = None
    completed_at: Optional[float] = None

    created_at: float = Field(default_factory=time.time, index=True)
    updated_at: float = Field(default_factory=time.time)
