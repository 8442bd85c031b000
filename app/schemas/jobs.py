from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from app.models.enums import JobStatus, JobType

class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: JobType
    status: JobStatus
    payload: Dict[str, Any] = Field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    priority: int
    attempts: int
    max_attempts: int
    scheduled_for: Optional[float] = None
    started_at: Optional[float] = None
    completed_at: Optional[float] = None
    created_at: float

class JobListResponse(BaseModel):
    jobs: List[JobOut]
    limit: int
    offset: int

class PendingJobSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: JobType
    status: JobStatus
    attempts: int
    created_at: float

class EmbedDocumentRequest(BaseModel):
    force: bool = False

class PublishPostRequest(BaseModel):
    # unix timestamp; omitted means publish on the next dispatch
    scheduled_for: Optional[float] = None
    priority: int = 0
