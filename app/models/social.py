import time
from typing import Dict, List, Optional
from sqlmodel import SQLModel, Field, JSON
from app.models.enums import ConnectionStatus, PublishedPostStatus, SocialPlatform

class SocialConnection(SQLModel, table=True):
    __tablename__ = "social_connections"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    platform: SocialPlatform
    # Instagram business account id or Facebook page id
    account_id: str
    access_token: str
    status: ConnectionStatus = Field(default=ConnectionStatus.ACTIVE)

    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)

class PublishedPost(SQLModel, table=True):
    __tablename__ = "published_posts"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    platform: SocialPlatform
    caption: Optional[str] = None
    media_urls: List[str] = Field(default_factory=list, sa_type=JSON)
    status: PublishedPostStatus = Field(default=PublishedPostStatus.SCHEDULED, index=True)

    platform_post_id: Optional[str] = None
    platform_post_url: Optional[str] = None
    failure_reason: Optional[str] = None

    metrics: Optional[Dict] = Field(default=None, sa_type=JSON)
    metrics_last_fetched_at: Optional[float] = None

    scheduled_for: Optional[float] = None
    published_at: Optional[float] = None
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)
