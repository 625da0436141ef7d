"""SQLiteVectorStore — documents and embeddings in one SQLite file, searched with usearch."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
from sqlalchemy import event, func, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, create_engine, select
from usearch.index import Index

from flpipeline.config import DEFAULT_EMBEDDING_DIMENSION
from flpipeline.exceptions import DocumentNotFoundError, StorageError
from flpipeline.models.documents import DocEmbedding, Document, EmbeddingMap
from flpipeline.search.types import Neighbor, StoreStats

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

_TABLES = (Document, DocEmbedding, EmbeddingMap)


class SQLiteVectorStore:
    """Durable document + embedding store with cosine nearest-neighbor search.

    - Document rows, float32 vector blobs and the document → vector mapping
      live in a single SQLite file; every mutating call commits before it
      returns.
    - Nearest-neighbor queries run an exact cosine search over a usearch
      index held in memory.  The index is rebuilt from SQL on the first
      query after any mutation, so SQL stays the only source of truth.

    Not safe for concurrent writers across processes.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        dimension: int = DEFAULT_EMBEDDING_DIMENSION,
    ) -> None:
        self._path = Path(path)
        self._dimension = dimension
        self._lock = threading.Lock()

        self._index: Index | None = None
        self._key_to_document: dict[int, int] = {}
        self._dirty = True

        try:
            self._engine: Engine = create_engine(f"sqlite:///{self._path}", echo=False)
            event.listen(self._engine, "connect", _set_sqlite_pragma)
            self._create_schema()
        except SQLAlchemyError as exc:
            msg = f"Failed to open document store at {self._path}: {exc}"
            raise StorageError(msg) from exc

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _create_schema(self) -> None:
        """Create tables if missing and add columns older databases lack."""
        with self._engine.begin() as conn:
            for model in _TABLES:
                model.__table__.create(conn, checkfirst=True)  # type: ignore[attr-defined]

            columns = {c["name"] for c in inspect(conn).get_columns("documents")}
            if "content_hash" not in columns:
                logger.info("Migrating %s: adding documents.content_hash", self._path)
                conn.execute(text("ALTER TABLE documents ADD COLUMN content_hash TEXT"))

    def _session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def upsert_document(
        self,
        filename: str,
        content: str,
        title: str,
        content_hash: str | None = None,
    ) -> int:
        """Insert or update the document for *filename*; return its id.

        - New filename: insert.
        - Same filename, same hash: no-op (the embedding is kept).
        - Same filename, different hash: update in place and drop the
          embedding; the caller must re-embed.
        """
        try:
            with self._session() as session:
                existing = session.exec(
                    select(Document).where(Document.filename == filename)
                ).first()

                if existing is not None and existing.id is not None:
                    if (
                        existing.content_hash
                        and content_hash
                        and existing.content_hash == content_hash
                    ):
                        return existing.id
                    existing.content = content
                    existing.title = title
                    existing.content_hash = content_hash
                    session.add(existing)
                    self._delete_embedding(session, existing.id)
                    session.commit()
                    return existing.id

                doc = Document(
                    filename=filename,
                    content=content,
                    title=title,
                    content_hash=content_hash,
                )
                session.add(doc)
                session.commit()
                assert doc.id is not None
                return doc.id
        except SQLAlchemyError as exc:
            msg = f"Failed to upsert document {filename!r}: {exc}"
            raise StorageError(msg) from exc

    def get_document(self, document_id: int) -> Document | None:
        """Return the document with *document_id*, or ``None``."""
        try:
            with self._session() as session:
                return session.get(Document, document_id)
        except SQLAlchemyError as exc:
            msg = f"Failed to read document {document_id}: {exc}"
            raise StorageError(msg) from exc

    def get_document_by_filename(self, filename: str) -> Document | None:
        """Return the document stored under *filename*, or ``None``."""
        try:
            with self._session() as session:
                return session.exec(
                    select(Document).where(Document.filename == filename)
                ).first()
        except SQLAlchemyError as exc:
            msg = f"Failed to read document {filename!r}: {exc}"
            raise StorageError(msg) from exc

    def list_documents(self) -> list[Document]:
        """Return every document ordered by filename."""
        try:
            with self._session() as session:
                return list(session.exec(select(Document).order_by(Document.filename)).all())
        except SQLAlchemyError as exc:
            msg = f"Failed to list documents: {exc}"
            raise StorageError(msg) from exc

    def delete_document(self, filename: str) -> bool:
        """Delete *filename* and its embedding. Returns ``False`` if it was absent."""
        try:
            with self._session() as session:
                doc = session.exec(select(Document).where(Document.filename == filename)).first()
                if doc is None or doc.id is None:
                    return False
                self._delete_embedding(session, doc.id)
                session.delete(doc)
                session.commit()
                return True
        except SQLAlchemyError as exc:
            msg = f"Failed to delete document {filename!r}: {exc}"
            raise StorageError(msg) from exc

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    def upsert_embedding(self, document_id: int, vector: Sequence[float]) -> int:
        """Replace the embedding of *document_id*; return the new embedding row id.

        Raises:
            DocumentNotFoundError: *document_id* does not reference a document.
            StorageError: *vector* does not have the store's dimension.
        """
        blob = self._pack(vector)
        try:
            with self._session() as session:
                if session.get(Document, document_id) is None:
                    msg = f"Cannot store embedding: document {document_id} does not exist"
                    raise DocumentNotFoundError(msg)

                self._delete_embedding(session, document_id)
                row = DocEmbedding(embedding=blob)
                session.add(row)
                session.flush()
                assert row.id is not None
                session.add(EmbeddingMap(document_id=document_id, embedding_rowid=row.id))
                session.commit()
                self._dirty = True
                return row.id
        except SQLAlchemyError as exc:
            msg = f"Failed to store embedding for document {document_id}: {exc}"
            raise StorageError(msg) from exc

    def embedding_rowid(self, document_id: int) -> int | None:
        """Return the embedding row id mapped to *document_id*, or ``None``."""
        try:
            with self._session() as session:
                mapping = session.get(EmbeddingMap, document_id)
                return mapping.embedding_rowid if mapping is not None else None
        except SQLAlchemyError as exc:
            msg = f"Failed to read embedding mapping for document {document_id}: {exc}"
            raise StorageError(msg) from exc

    def nearest_neighbors(self, vector: Sequence[float], limit: int = 10) -> list[Neighbor]:
        """Return up to *limit* neighbors ordered by ascending cosine distance."""
        if limit <= 0:
            return []
        query = self._as_array(vector)

        with self._lock:
            try:
                index = self._ensure_index()
            except SQLAlchemyError as exc:
                msg = f"Failed to load embeddings: {exc}"
                raise StorageError(msg) from exc

            if index is None:
                return []
            count = min(limit, len(self._key_to_document))
            matches = index.search(query, count, exact=True)

        neighbors: list[Neighbor] = []
        for key, distance in zip(
            matches.keys.tolist(), matches.distances.tolist(), strict=True
        ):
            document_id = self._key_to_document.get(int(key))
            if document_id is None:
                continue
            neighbors.append(Neighbor(document_id=document_id, distance=float(distance)))

        neighbors.sort(key=lambda n: n.distance)
        return neighbors

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def stats(self) -> StoreStats:
        """Count documents and embedding mappings independently."""
        try:
            with self._session() as session:
                doc_count = session.exec(select(func.count()).select_from(Document)).one()
                emb_count = session.exec(select(func.count()).select_from(EmbeddingMap)).one()
        except SQLAlchemyError as exc:
            msg = f"Failed to read store statistics: {exc}"
            raise StorageError(msg) from exc
        return StoreStats(document_count=int(doc_count), embedding_count=int(emb_count))

    @property
    def path(self) -> Path:
        """Return the database file path."""
        return self._path

    @property
    def dimension(self) -> int:
        """Return the vector width accepted by the store."""
        return self._dimension

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Dispose of the engine and drop the in-memory index."""
        self._engine.dispose()
        self._index = None
        self._key_to_document = {}
        self._dirty = True

    def __enter__(self) -> SQLiteVectorStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _delete_embedding(self, session: Session, document_id: int) -> None:
        """Drop the mapping and vector row for *document_id* (caller commits)."""
        mapping = session.get(EmbeddingMap, document_id)
        if mapping is None:
            return
        vector_row = session.get(DocEmbedding, mapping.embedding_rowid)
        session.delete(mapping)
        session.flush()
        if vector_row is not None:
            session.delete(vector_row)
            session.flush()
        self._dirty = True

    def _ensure_index(self) -> Index | None:
        """Rebuild the usearch index from SQL if the store changed since the last query."""
        if not self._dirty:
            return self._index

        with self._session() as session:
            rows: list[Any] = list(
                session.exec(
                    select(EmbeddingMap.document_id, DocEmbedding.id, DocEmbedding.embedding).join(
                        DocEmbedding, DocEmbedding.id == EmbeddingMap.embedding_rowid
                    )
                ).all()
            )

        self._key_to_document = {}
        if not rows:
            self._index = None
            self._dirty = False
            return None

        expected = self._dimension * 4
        for row in rows:
            if len(row[2]) != expected:
                msg = (
                    f"Embedding row {row[1]} in {self._path} has {len(row[2]) // 4} "
                    f"dimensions; store expects {self._dimension}"
                )
                raise StorageError(msg)

        keys = np.array([row[1] for row in rows], dtype=np.uint64)
        vectors = np.vstack([np.frombuffer(row[2], dtype="<f4") for row in rows])
        index = Index(ndim=self._dimension, metric="cos", dtype="f32")
        index.add(keys, vectors)

        self._key_to_document = {int(row[1]): int(row[0]) for row in rows}
        self._index = index
        self._dirty = False
        logger.debug("Rebuilt vector index with %d embeddings", len(rows))
        return index

    def _as_array(self, vector: Sequence[float]) -> np.ndarray:
        array = np.asarray(vector, dtype=np.float32)
        if array.ndim != 1 or array.shape[0] != self._dimension:
            msg = f"Embedding has {array.size} dimensions; store expects {self._dimension}"
            raise StorageError(msg)
        return array

    def _pack(self, vector: Sequence[float]) -> bytes:
        return self._as_array(vector).astype("<f4").tobytes()


def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.execute("PRAGMA synchronous=FULL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
