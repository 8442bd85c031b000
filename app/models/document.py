import time
from typing import List, Optional
from sqlmodel import SQLModel, Field, JSON
from app.models.enums import EmbeddingStatus

class Document(SQLModel, table=True):
    __tablename__ = "documents"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    title: str
    content: str = ""
    category: str = Field(default="general")

    embedded: bool = Field(default=False)
    embedding_status: EmbeddingStatus = Field(default=EmbeddingStatus.PENDING)
    embedding_progress: int = Field(default=0)
    embedding_model: Optional[str] = None
    chunks_count: int = Field(default=0)
    last_embedded_at: Optional[float] = None

    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)

class DocumentEmbedding(SQLModel, table=True):
    __tablename__ = "document_embeddings"

    id: Optional[int] = Field(default=None, primary_key=True)
    document_id: int = Field(foreign_key="documents.id", index=True)
    embedding: List[float] = Field(default_factory=list, sa_type=JSON)
    model: str
    chunk_index: int
    chunk_text: str
    start_pos: int
    end_pos: int

    created_at: float = Field(default_factory=time.time)
