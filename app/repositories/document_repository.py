import time
from typing import List, Optional
from sqlmodel import select
from app.repositories.base_repository import BaseRepository
from app.models.document import Document, DocumentEmbedding
from app.models.enums import EmbeddingStatus

class DocumentRepository(BaseRepository):
    def get_for_user(self, document_id: int, user_id: str) -> Optional[Document]:
        statement = select(Document).where(Document.id == document_id, Document.user_id == user_id)
        return self.session.exec(statement).first()

    def start_embedding(self, doc: Document, chunks_count: int):
        doc.chunks_count = chunks_count
        doc.embedding_progress = 0
        doc.embedding_status = EmbeddingStatus.PROCESSING
        doc.updated_at = time.time()
        self._save(doc)

    def replace_embeddings(self, doc: Document, rows: List[DocumentEmbedding], progress_every: int = 3):
        for old in self.embeddings_for(doc.id):
            self.session.delete(old)
        self.session.commit()
        for i, row in enumerate(rows):
            self.session.add(row)
            # progress is written every few chunks to keep writes down
            if i % progress_every == 0 or i == len(rows) - 1:
                doc.embedding_progress = i + 1
                self.session.add(doc)
                self.session.commit()

    def finish_embedding(self, doc: Document, model: str):
        now = time.time()
        doc.embedded = True
        doc.embedding_status = EmbeddingStatus.COMPLETED
        doc.embedding_model = model
        doc.embedding_progress = doc.chunks_count
        doc.last_embedded_at = now
        doc.updated_at = now
        self._save(doc)

    def fail_embedding(self, doc: Document):
        doc.embedding_status = EmbeddingStatus.FAILED
        doc.updated_at = time.time()
        self._save(doc)

    def embeddings_for(self, document_id: int) -> List[DocumentEmbedding]:
        statement = (
            select(DocumentEmbedding)
            .where(DocumentEmbedding.document_id == document_id)
            .order_by(DocumentEmbedding.chunk_index)
        )
        return list(self.session.exec(statement).all())
