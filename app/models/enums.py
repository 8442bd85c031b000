from enum import Enum

class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

# Every legal status change. Terminal states have no outgoing edges.
ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PROCESSING},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.PENDING},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}

class JobType(str, Enum):
    AI_TEXT_GENERATION = "ai_text_generation"
    AI_IMAGE_GENERATION = "ai_image_generation"
    CAROUSEL_CREATION = "carousel_creation"
    SCHEDULED_PUBLISH = "scheduled_publish"
    WEB_SCRAPING = "web_scraping"
    DOCUMENT_EMBEDDING = "document_embedding"
    WIZARD_IMAGE_GENERATION = "wizard_image_generation"
    SOCIAL_PUBLISH_INSTAGRAM = "social_publish_instagram"
    SOCIAL_PUBLISH_FACEBOOK = "social_publish_facebook"
    SOCIAL_METRICS_FETCH = "social_metrics_fetch"

class EmbeddingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

class SocialPlatform(str, Enum):
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"

class ConnectionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"

class PublishedPostStatus(str, Enum):
    SCHEDULED = "scheduled"
    PUBLISHING = "publishing"
    PUBLISHED = "published"
    FAILED = "failed"
