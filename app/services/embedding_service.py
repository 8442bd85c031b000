from typing import List, Optional

from app.config import EMBEDDING_BATCH_SIZE, EMBEDDING_MODEL
from app.services.http_service_client import HTTPServiceClient, ServiceCallError

class EmbeddingService:
    """Voyage AI embeddings, batched."""

    def __init__(self, client: Optional[HTTPServiceClient] = None, model: str = EMBEDDING_MODEL):
        self.client = client or HTTPServiceClient()
        self.model = model

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """One vector per text, in input order."""
        if not texts:
            raise ValueError("Cannot generate embeddings for empty texts")
        blank = [i for i, t in enumerate(texts) if not t or not t.strip()]
        if blank:
            raise ValueError(f"Cannot generate embeddings for blank texts at positions {blank}")

        vectors: List[List[float]] = []
        for start in range(0, len(texts), EMBEDDING_BATCH_SIZE):
            batch = texts[start:start + EMBEDDING_BATCH_SIZE]
            out = self.client.call("voyage", "POST", "/embeddings", json={
                "input": batch,
                "model": self.model,
                "output_dtype": "float",
            })
            data = out.get("data")
            if not isinstance(data, list) or len(data) != len(batch):
                raise ServiceCallError("BAD_RESPONSE", "Embedding count does not match input", True)
            vectors.extend(item["embedding"] for item in sorted(data, key=lambda d: d.get("index", 0)))
        return vectors
