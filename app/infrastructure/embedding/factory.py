"""
Builds the configured EmbeddingService adapter.
"""

from app.config import Settings
from app.domain.ports import EmbeddingService


def build_embedding_service(settings: Settings) -> EmbeddingService:
    """
    Instantiate the backend named by settings.embedding_backend.

    sentence-transformers is imported only when selected, since importing
    it pulls in torch.
    """
    if settings.embedding_backend == "sentence-transformers":
        from .sentence_transformer_embedding_service import (
            SentenceTransformerEmbeddingService,
        )

        return SentenceTransformerEmbeddingService(
            model_name=settings.sentence_transformer_model
        )

    from .ollama_embedding_service import OllamaEmbeddingService

    return OllamaEmbeddingService(
        base_url=settings.ollama_base_url,
        model=settings.ollama_model,
        timeout_s=settings.ollama_timeout_s,
    )
