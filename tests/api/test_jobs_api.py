import asyncio
import time

from fastapi.testclient import TestClient

from app.models.document import Document
from app.models.enums import EmbeddingStatus, JobType, PublishedPostStatus, SocialPlatform
from app.models.social import PublishedPost

USER = {"X-User-Id": "user-1"}

def add(session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj

def test_jobs_require_user(client: TestClient):
    assert client.get("/api/jobs").status_code == 401
    assert client.get("/api/jobs/1").status_code == 401

def test_list_jobs(client: TestClient, jobs):
    asyncio.run(jobs.create_job("user-1", JobType.WEB_SCRAPING, {}))
    asyncio.run(jobs.create_job("user-1", JobType.AI_TEXT_GENERATION, {"prompt": "hi"}))
    asyncio.run(jobs.create_job("user-2", JobType.WEB_SCRAPING, {}))

    response = client.get("/api/jobs", headers=USER)
    assert response.status_code == 200
    data = response.json()
    assert len(data["jobs"]) == 2
    assert data["limit"] == 20
    assert data["offset"] == 0

    filtered = client.get("/api/jobs?type=ai_text_generation", headers=USER).json()
    assert [j["type"] for j in filtered["jobs"]] == ["ai_text_generation"]

    completed = client.get("/api/jobs?status=completed", headers=USER).json()
    assert completed["jobs"] == []

def test_list_jobs_rejects_bad_limit(client: TestClient):
    assert client.get("/api/jobs?limit=500", headers=USER).status_code == 422

def test_get_job(client: TestClient, jobs):
    job_id = asyncio.run(jobs.create_job("user-1", JobType.WEB_SCRAPING, {"url": "https://example.com"}))

    response = client.get(f"/api/jobs/{job_id}", headers=USER)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == job_id
    assert data["status"] == "pending"
    assert data["payload"] == {"url": "https://example.com"}
    assert data["attempts"] == 0
    assert data["max_attempts"] == 3

def test_other_users_job_is_hidden(client: TestClient, jobs):
    job_id = asyncio.run(jobs.create_job("user-2", JobType.WEB_SCRAPING, {}))
    assert client.get(f"/api/jobs/{job_id}", headers=USER).status_code == 404
    assert client.get("/api/jobs/9999", headers=USER).status_code == 404

def test_embed_missing_document(client: TestClient):
    assert client.post("/api/documents/42/embed", headers=USER).status_code == 404

def test_embed_document_in_progress(client: TestClient, session, queue):
    doc = add(session, Document(user_id="user-1", title="Brand", content="x",
                                embedding_status=EmbeddingStatus.PROCESSING))

    assert client.post(f"/api/documents/{doc.id}/embed", headers=USER).status_code == 409

    forced = client.post(f"/api/documents/{doc.id}/embed", headers=USER, json={"force": True})
    assert forced.status_code == 202
    assert queue.queued_ids() == [forced.json()["jobId"]]

def test_publish_post(client: TestClient, session, jobs, queue):
    post = add(session, PublishedPost(user_id="user-1", platform=SocialPlatform.FACEBOOK, media_urls=["https://cdn/1.png"]))

    response = client.post(f"/api/posts/{post.id}/publish", headers=USER, json={"priority": 5})

    assert response.status_code == 202
    job_id = response.json()["jobId"]
    job = jobs.get_job(job_id)
    assert job.type == JobType.SOCIAL_PUBLISH_FACEBOOK
    assert job.priority == 5
    assert job.payload == {"published_post_id": post.id, "user_id": "user-1"}
    assert queue.queued_ids() == [job_id]

def test_schedule_post_for_later(client: TestClient, session, queue):
    post = add(session, PublishedPost(user_id="user-1", platform=SocialPlatform.INSTAGRAM, media_urls=["https://cdn/1.png"]))
    run_at = time.time() + 3600

    response = client.post(f"/api/posts/{post.id}/publish", headers=USER, json={"scheduled_for": run_at})

    assert response.status_code == 202
    assert response.json()["scheduledFor"] == run_at
    assert queue.queued_ids() == []

def test_publish_rejects_published_or_foreign_post(client: TestClient, session):
    done = add(session, PublishedPost(user_id="user-1", platform=SocialPlatform.FACEBOOK,
                                      status=PublishedPostStatus.PUBLISHED))
    foreign = add(session, PublishedPost(user_id="user-2", platform=SocialPlatform.FACEBOOK))

    assert client.post(f"/api/posts/{done.id}/publish", headers=USER).status_code == 409
    assert client.post(f"/api/posts/{foreign.id}/publish", headers=USER).status_code == 404
