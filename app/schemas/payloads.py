from typing import Any, Dict, List, Optional, Type
from pydantic import BaseModel, ConfigDict, Field
from app.models.enums import JobType

class JobPayload(BaseModel):
    # unknown keys are kept so placeholder handlers stay forward compatible
    model_config = ConfigDict(extra="allow")

class DocumentEmbeddingPayload(JobPayload):
    document_id: int
    user_id: str
    force: bool = False

class SocialPublishPayload(JobPayload):
    published_post_id: int
    user_id: str

class MetricsFetchPayload(JobPayload):
    user_id: Optional[str] = None
    published_post_id: Optional[int] = None

class WizardSlide(BaseModel):
    prompt: str
    slide_number: Optional[int] = None

class WizardImageGenerationPayload(JobPayload):
    wizard_id: int
    user_id: str
    slides: List[WizardSlide] = Field(min_length=1)
    model: Optional[str] = None

PAYLOAD_MODELS: Dict[JobType, Type[JobPayload]] = {
    JobType.AI_TEXT_GENERATION: JobPayload,
    JobType.AI_IMAGE_GENERATION: JobPayload,
    JobType.CAROUSEL_CREATION: JobPayload,
    JobType.SCHEDULED_PUBLISH: JobPayload,
    JobType.WEB_SCRAPING: JobPayload,
    JobType.DOCUMENT_EMBEDDING: DocumentEmbeddingPayload,
    JobType.WIZARD_IMAGE_GENERATION: WizardImageGenerationPayload,
    JobType.SOCIAL_PUBLISH_INSTAGRAM: SocialPublishPayload,
    JobType.SOCIAL_PUBLISH_FACEBOOK: SocialPublishPayload,
    JobType.SOCIAL_METRICS_FETCH: MetricsFetchPayload,
}

def validate_payload(job_type: JobType, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a payload against its job type and return the normalized JSON dict."""
    model = PAYLOAD_MODELS[job_type]
    return model.model_validate(payload).model_dump(mode="json", exclude_none=True)
