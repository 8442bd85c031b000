"""Job handlers, one per JobType.

Each handler is ``async (payload: dict) -> dict``. Handlers that touch the
database or call external APIs do the blocking work in a thread so the
dispatcher's timeout can still fire. Handlers are written to be safe to run
more than once for the same payload: a crash between a handler's own writes
and the job's terminal update leads to a retry, not to duplicated effects.
"""
import asyncio
import time
from typing import Any, Dict

import structlog

from app import dependencies
from app.config import JOB_HANDLER_TIMEOUT_S
from app.models.document import DocumentEmbedding
from app.models.enums import JobType, PublishedPostStatus, SocialPlatform
from app.repositories.document_repository import DocumentRepository
from app.repositories.post_repository import PostRepository
from app.schemas.payloads import (
    DocumentEmbeddingPayload,
    MetricsFetchPayload,
    SocialPublishPayload,
    WizardImageGenerationPayload,
)
from app.services.chunking import options_for_category, split_into_chunks
from app.services.embedding_service import EmbeddingService
from app.services.http_service_client import HTTPServiceClient, ServiceCallError
from app.services.social_service import GraphAPIService, post_url

logger = structlog.get_logger()

# Generation placeholders

async def ai_text_generation(payload: Dict[str, Any]) -> Dict[str, Any]:
    await asyncio.sleep(1)
    return {"text": "Generated text placeholder"}

async def ai_image_generation(payload: Dict[str, Any]) -> Dict[str, Any]:
    await asyncio.sleep(2)
    return {"image_url": "https://example.com/image.png"}

async def carousel_creation(payload: Dict[str, Any]) -> Dict[str, Any]:
    await asyncio.sleep(3)
    return {"carousel_url": "https://example.com/carousel.pdf"}

async def scheduled_publish(payload: Dict[str, Any]) -> Dict[str, Any]:
    await asyncio.sleep(1)
    return {"published": True, "post_id": "post_123"}

async def web_scraping(payload: Dict[str, Any]) -> Dict[str, Any]:
    await asyncio.sleep(2)
    return {"scraped": True, "data": []}

# Document embedding

def _embed_document(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = DocumentEmbeddingPayload.model_validate(payload)

    with dependencies.open_session() as session:
        repo = DocumentRepository(session)
        doc = repo.get_for_user(p.document_id, p.user_id)
        if doc is None:
            raise LookupError(f"Document {p.document_id} not found for user {p.user_id}")

        if doc.embedded and not p.force:
            return {"success": True, "already_embedded": True, "chunks_processed": doc.chunks_count}

        chunks = split_into_chunks(doc.content or "", options_for_category(doc.category or "general"))
        if not chunks:
            raise ValueError("Document content is empty or could not be chunked")

        repo.start_embedding(doc, len(chunks))
        service = EmbeddingService()
        try:
            vectors = service.embed_batch([c.text for c in chunks])
        except Exception:
            repo.fail_embedding(doc)
            raise

        rows = [
            DocumentEmbedding(
                document_id=doc.id,
                embedding=vector,
                model=service.model,
                chunk_index=chunk.index,
                chunk_text=chunk.text,
                start_pos=chunk.start_position,
                end_pos=chunk.end_position,
            )
            for chunk, vector in zip(chunks, vectors)
        ]
        repo.replace_embeddings(doc, rows)
        repo.finish_embedding(doc, service.model)

        logger.info("Document embedded", document_id=doc.id, chunks=len(chunks), model=service.model)
        return {
            "success": True,
            "chunks_processed": len(chunks),
            "model": service.model,
            "document_id": doc.id,
        }

async def document_embedding(payload: Dict[str, Any]) -> Dict[str, Any]:
    return await asyncio.to_thread(_embed_document, payload)

# Wizard slide images

def _generate_wizard_images(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = WizardImageGenerationPayload.model_validate(payload)
    client = HTTPServiceClient()

    images = []
    for i, slide in enumerate(p.slides, start=1):
        number = slide.slide_number or i
        body = {"prompt": slide.prompt}
        if p.model:
            body["model"] = p.model
        out = client.call("image_gen", "POST", "/v1/images", json=body)
        if not out.get("image_url"):
            raise ServiceCallError("BAD_RESPONSE", f"No image returned for slide {number}", True, out)
        images.append({"slide_number": number, "image_url": out["image_url"]})

    return {"wizard_id": p.wizard_id, "images": images}

async def wizard_image_generation(payload: Dict[str, Any]) -> Dict[str, Any]:
    return await asyncio.to_thread(_generate_wizard_images, payload)

# Social publishing

class PublishInProgressError(RuntimeError):
    pass

def _publish_post(payload: Dict[str, Any], platform: SocialPlatform) -> Dict[str, Any]:
    p = SocialPublishPayload.model_validate(payload)

    with dependencies.open_session() as session:
        repo = PostRepository(session)
        post = repo.get(p.published_post_id)
        if post is None:
            raise LookupError(f"Published post {p.published_post_id} not found")
        if post.user_id != p.user_id:
            raise PermissionError(f"Published post {post.id} does not belong to user {p.user_id}")
        if post.platform != platform:
            raise ValueError(f"Published post {post.id} targets {post.platform.value}, not {platform.value}")

        if post.status == PublishedPostStatus.PUBLISHED:
            return {"success": True, "already_published": True, "platform_post_id": post.platform_post_id}

        # an earlier attempt that timed out may still be talking to the Graph API
        if post.status == PublishedPostStatus.PUBLISHING and post.updated_at > time.time() - JOB_HANDLER_TIMEOUT_S:
            raise PublishInProgressError(f"Published post {post.id} is already being published")

        if not post.media_urls:
            raise ValueError("No media URLs found")

        connection = repo.active_connection(p.user_id, platform)
        if connection is None:
            raise LookupError(f"No active {platform.value} connection")

        repo.mark_publishing(post)
        service = GraphAPIService(connection.access_token, connection.account_id)
        try:
            platform_post_id = service.publish(platform, post.media_urls, post.caption)
        except ServiceCallError as e:
            repo.mark_failed(post, str(e))
            raise

        url = post_url(platform, platform_post_id)
        repo.mark_published(post, platform_post_id, url)
        logger.info("Post published", post_id=post.id, platform=platform.value, platform_post_id=platform_post_id)
        return {"success": True, "platform_post_id": platform_post_id, "platform_post_url": url}

async def social_publish_instagram(payload: Dict[str, Any]) -> Dict[str, Any]:
    return await asyncio.to_thread(_publish_post, payload, SocialPlatform.INSTAGRAM)

async def social_publish_facebook(payload: Dict[str, Any]) -> Dict[str, Any]:
    return await asyncio.to_thread(_publish_post, payload, SocialPlatform.FACEBOOK)

def _fetch_metrics(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = MetricsFetchPayload.model_validate(payload)

    with dependencies.open_session() as session:
        repo = PostRepository(session)
        if p.published_post_id is not None:
            post = repo.get(p.published_post_id)
            posts = [post] if post else []
        else:
            posts = repo.due_for_metrics(time.time(), user_id=p.user_id)

        updated = 0
        errors = []
        for post in posts:
            connection = repo.active_connection(post.user_id, post.platform)
            if connection is None or not post.platform_post_id:
                reason = "No connection found" if connection is None else "No platform post id"
                errors.append({"post_id": post.id, "platform": post.platform.value, "error": reason})
                continue
            try:
                metrics = GraphAPIService(connection.access_token, connection.account_id).metrics(
                    post.platform, post.platform_post_id
                )
            except ServiceCallError as e:
                logger.warning("Metrics fetch failed", post_id=post.id, error=str(e))
                errors.append({"post_id": post.id, "platform": post.platform.value, "error": str(e)})
                continue
            repo.save_metrics(post, metrics)
            updated += 1

        return {"success": True, "updated_count": updated, "errors": errors}

async def social_metrics_fetch(payload: Dict[str, Any]) -> Dict[str, Any]:
    return await asyncio.to_thread(_fetch_metrics, payload)

HANDLERS = {
    JobType.AI_TEXT_GENERATION: ai_text_generation,
    JobType.AI_IMAGE_GENERATION: ai_image_generation,
    JobType.CAROUSEL_CREATION: carousel_creation,
    JobType.SCHEDULED_PUBLISH: scheduled_publish,
    JobType.WEB_SCRAPING: web_scraping,
    JobType.DOCUMENT_EMBEDDING: document_embedding,
    JobType.WIZARD_IMAGE_GENERATION: wizard_image_generation,
    JobType.SOCIAL_PUBLISH_INSTAGRAM: social_publish_instagram,
    JobType.SOCIAL_PUBLISH_FACEBOOK: social_publish_facebook,
    JobType.SOCIAL_METRICS_FETCH: social_metrics_fetch,
}

_missing = set(JobType) - set(HANDLERS)
if _missing:
    raise RuntimeError(f"Job types without a handler: {sorted(t.value for t in _missing)}")
