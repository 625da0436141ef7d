"""Document, embedding and mapping tables for the documentation store.

Vectors live in ``doc_embeddings`` as packed float32 blobs.  A document owns
at most one embedding; ``embedding_map`` ties the two together so that the
vector table never needs to know about documents.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, LargeBinary
from sqlmodel import Field, SQLModel


class Document(SQLModel, table=True):
    """A documentation file, keyed by its path relative to the docs root."""

    __tablename__ = "documents"
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    filename: str = Field(index=True, unique=True)
    content: str
    title: str
    content_hash: str | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
    )


class DocEmbedding(SQLModel, table=True):
    """A single embedding vector. Row ids are never reused."""

    __tablename__ = "doc_embeddings"
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    embedding: bytes = Field(sa_type=LargeBinary)


class EmbeddingMap(SQLModel, table=True):
    """``document_id`` → ``doc_embeddings.id``, one row per embedded document."""

    __tablename__ = "embedding_map"

    document_id: int = Field(primary_key=True, foreign_key="documents.id")
    embedding_rowid: int = Field(foreign_key="doc_embeddings.id")
