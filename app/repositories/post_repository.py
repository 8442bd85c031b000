import time
from typing import Dict, List, Optional
from sqlmodel import select
from app.repositories.base_repository import BaseRepository
from app.models.enums import ConnectionStatus, PublishedPostStatus, SocialPlatform
from app.models.social import PublishedPost, SocialConnection

class PostRepository(BaseRepository):
    def get(self, post_id: int) -> Optional[PublishedPost]:
        return self.session.get(PublishedPost, post_id)

    def get_for_user(self, post_id: int, user_id: str) -> Optional[PublishedPost]:
        post = self.get(post_id)
        if post is None or post.user_id != user_id:
            return None
        return post

    def active_connection(self, user_id: str, platform: SocialPlatform) -> Optional[SocialConnection]:
        statement = select(SocialConnection).where(
            SocialConnection.user_id == user_id,
            SocialConnection.platform == platform,
            SocialConnection.status == ConnectionStatus.ACTIVE,
        )
        return self.session.exec(statement).first()

    def mark_publishing(self, post: PublishedPost):
        post.status = PublishedPostStatus.PUBLISHING
        post.updated_at = time.time()
        self._save(post)

    def mark_published(self, post: PublishedPost, platform_post_id: str, platform_post_url: str):
        now = time.time()
        post.status = PublishedPostStatus.PUBLISHED
        post.platform_post_id = platform_post_id
        post.platform_post_url = platform_post_url
        post.failure_reason = None
        post.published_at = now
        post.updated_at = now
        self._save(post)

    def mark_failed(self, post: PublishedPost, reason: str):
        post.status = PublishedPostStatus.FAILED
        post.failure_reason = reason
        post.updated_at = time.time()
        self._save(post)

    def save_metrics(self, post: PublishedPost, metrics: Dict):
        now = time.time()
        post.metrics = metrics
        post.metrics_last_fetched_at = now
        post.updated_at = now
        self._save(post)

    def due_for_metrics(self, now: float, user_id: Optional[str] = None) -> List[PublishedPost]:
        """Posts published over an hour ago whose metrics are missing or a day old."""
        one_hour_ago = now - 3600
        one_day_ago = now - 24 * 3600
        statement = select(PublishedPost).where(
            PublishedPost.status == PublishedPostStatus.PUBLISHED,
            PublishedPost.published_at < one_hour_ago,
            (PublishedPost.metrics_last_fetched_at.is_(None))
            | (PublishedPost.metrics_last_fetched_at < one_day_ago),
        )
        if user_id:
            statement = statement.where(PublishedPost.user_id == user_id)
        return list(self.session.exec(statement).all())
