"""SQLModel database models for flpipeline."""

from flpipeline.models.documents import DocEmbedding, Document, EmbeddingMap

__all__ = [
    "DocEmbedding",
    "Document",
    "EmbeddingMap",
]
