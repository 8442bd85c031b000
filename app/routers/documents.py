from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.dependencies import get_job_service, get_session, require_user
from app.models.enums import EmbeddingStatus, JobType
from app.repositories.document_repository import DocumentRepository
from app.schemas.jobs import EmbedDocumentRequest
from app.services.job_service import JobService

router = APIRouter()

@router.post("/documents/{document_id}/embed", status_code=202)
async def embed_document(
    document_id: int,
    req: EmbedDocumentRequest = EmbedDocumentRequest(),
    user_id: str = Depends(require_user),
    session: Session = Depends(get_session),
    jobs: JobService = Depends(get_job_service),
):
    doc = DocumentRepository(session).get_for_user(document_id, user_id)
    if not doc:
        raise HTTPException(404, "Document not found")
    if doc.embedding_status == EmbeddingStatus.PROCESSING and not req.force:
        raise HTTPException(409, "Document is already being embedded")

    job_id = await jobs.create_job(
        user_id,
        JobType.DOCUMENT_EMBEDDING,
        {"document_id": document_id, "user_id": user_id, "force": req.force},
    )
    return {"jobId": job_id, "status": "pending"}
