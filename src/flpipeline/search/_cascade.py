"""Documentation search fallback chain.

Tiers are tried in order: semantic search over stored embeddings, keyword
scoring over stored document content, then a keyword scan of the docs
directory.  A tier that cannot answer raises
:class:`~flpipeline.exceptions.TierUnavailableError`; any other exception is
a bug and propagates.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from flpipeline.exceptions import (
    ConfigError,
    ProviderError,
    StorageError,
    TierUnavailableError,
)
from flpipeline.search import lexical
from flpipeline.search._searcher import DocumentSearcher
from flpipeline.search.protocols import SupportsClose
from flpipeline.search.providers import create_embedding_provider
from flpipeline.search.stores.sqlite import SQLiteVectorStore
from flpipeline.search.types import DocMatch

if TYPE_CHECKING:
    from collections.abc import Sequence

    from flpipeline.config import FlpipelineConfig
    from flpipeline.search.protocols import EmbeddingProvider, SearchTier

logger = logging.getLogger(__name__)

TASK_DOC_PICKS = 3


# ------------------------------------------------------------------
# Tiers
# ------------------------------------------------------------------


class SemanticTier:
    """Embedding search through :class:`DocumentSearcher`."""

    def __init__(
        self,
        db_path: str | Path,
        embedding_provider: EmbeddingProvider,
        *,
        dimension: int | None = None,
        min_similarity: float = 0.5,
    ) -> None:
        self._db_path = Path(db_path)
        self._provider = embedding_provider
        self._dimension = dimension if dimension is not None else embedding_provider.dimensions
        self._min_similarity = min_similarity

    @property
    def name(self) -> str:
        return "semantic"

    def search(self, query: str, limit: int) -> list[DocMatch]:
        if not self._db_path.exists():
            msg = f"No document index at {self._db_path}"
            raise TierUnavailableError(msg)
        try:
            with SQLiteVectorStore(self._db_path, dimension=self._dimension) as store:
                if store.stats().embedding_count == 0:
                    msg = f"Document index at {self._db_path} has no embeddings"
                    raise TierUnavailableError(msg)
                results = DocumentSearcher(store, self._provider).search(
                    query, limit=limit, min_similarity=self._min_similarity
                )
        except (ProviderError, StorageError, SQLAlchemyError) as exc:
            msg = f"Semantic search failed: {exc}"
            raise TierUnavailableError(msg) from exc
        return [DocMatch(r.document.filename, r.relevance_score, self.name) for r in results]


class StoredLexicalTier:
    """Keyword scoring over the content saved in the document store."""

    def __init__(self, db_path: str | Path, *, dimension: int = 768) -> None:
        self._db_path = Path(db_path)
        self._dimension = dimension

    @property
    def name(self) -> str:
        return "stored-lexical"

    def search(self, query: str, limit: int) -> list[DocMatch]:
        if not self._db_path.exists():
            msg = f"No document index at {self._db_path}"
            raise TierUnavailableError(msg)
        try:
            with SQLiteVectorStore(self._db_path, dimension=self._dimension) as store:
                documents = store.list_documents()
        except (StorageError, SQLAlchemyError) as exc:
            msg = f"Stored lexical search failed: {exc}"
            raise TierUnavailableError(msg) from exc
        if not documents:
            msg = f"Document index at {self._db_path} is empty"
            raise TierUnavailableError(msg)

        words = lexical.parse_query(query)
        scored = [
            (doc.filename, lexical.score_document(doc.filename, doc.title, doc.content, words))
            for doc in documents
        ]
        return [DocMatch(fn, score, self.name) for fn, score in lexical.rank(scored, limit)]


class FilesystemLexicalTier:
    """Keyword scan of the markdown files under the docs directory."""

    def __init__(self, docs_root: str | Path) -> None:
        self._docs_root = Path(docs_root)

    @property
    def name(self) -> str:
        return "filesystem"

    def search(self, query: str, limit: int) -> list[DocMatch]:
        if not self._docs_root.is_dir():
            msg = f"Documentation directory not found: {self._docs_root}"
            raise TierUnavailableError(msg)

        words = lexical.parse_query(query)
        scored: list[tuple[str, int]] = []
        for path in lexical.walk_markdown(self._docs_root):
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.debug("Skipping unreadable doc %s: %s", path, exc)
                continue
            relative = path.relative_to(self._docs_root).as_posix()
            title = lexical.first_heading(content)
            scored.append((relative, lexical.score_document(relative, title, content, words)))
        return [DocMatch(fn, score, self.name) for fn, score in lexical.rank(scored, limit)]


# ------------------------------------------------------------------
# Chain
# ------------------------------------------------------------------


class FallbackDocSearch:
    """Ordered chain of :class:`SearchTier` objects; the first tier that answers wins."""

    def __init__(
        self,
        tiers: Sequence[SearchTier],
        *,
        owned: Sequence[object] = (),
    ) -> None:
        if not tiers:
            msg = "FallbackDocSearch needs at least one tier"
            raise ValueError(msg)
        self._tiers = list(tiers)
        self._owned = list(owned)

    @property
    def tiers(self) -> list[SearchTier]:
        return list(self._tiers)

    def search(self, query: str, limit: int = 5) -> list[DocMatch]:
        last_error: TierUnavailableError | None = None
        for tier in self._tiers:
            try:
                return tier.search(query, limit)
            except TierUnavailableError as exc:
                logger.warning("Search tier %s unavailable, falling back: %s", tier.name, exc)
                last_error = exc
        assert last_error is not None
        raise last_error

    def close(self) -> None:
        """Close the clients this chain created (see :meth:`from_config`)."""
        for resource in self._owned:
            if isinstance(resource, SupportsClose):
                resource.close()
        self._owned = []

    def __enter__(self) -> FallbackDocSearch:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @classmethod
    def from_config(
        cls,
        config: FlpipelineConfig,
        embedding_provider: EmbeddingProvider | None = None,
        *,
        min_similarity: float = 0.5,
    ) -> FallbackDocSearch:
        """Build the standard semantic → stored → filesystem chain.

        Without an *embedding_provider* one is created from ``config.embedding``
        and closed with the chain; if creating it fails the semantic tier is
        left out.  A provider passed in stays open.
        """
        tiers: list[SearchTier] = []
        provider = embedding_provider
        if provider is None:
            try:
                provider = create_embedding_provider(config.embedding)
            except ConfigError as exc:
                logger.warning("Semantic search disabled: %s", exc)
        if provider is not None:
            tiers.append(
                SemanticTier(
                    config.db_path,
                    provider,
                    dimension=config.embedding.dimension,
                    min_similarity=min_similarity,
                )
            )
        tiers.append(StoredLexicalTier(config.db_path, dimension=config.embedding.dimension))
        tiers.append(FilesystemLexicalTier(config.resolve_docs_path()))
        owned = [provider] if embedding_provider is None and provider is not None else []
        return cls(tiers, owned=owned)


def find_relevant_docs_for_task(
    task: str,
    config: FlpipelineConfig,
    embedding_provider: EmbeddingProvider | None = None,
    limit: int = 10,
) -> list[str]:
    """Pick up to three documentation files relevant to a task description.

    Returns an empty list when no tier can answer.
    """
    with FallbackDocSearch.from_config(config, embedding_provider) as chain:
        try:
            matches = chain.search(task, limit)
        except TierUnavailableError as exc:
            logger.warning("No documentation search available for task: %s", exc)
            return []
    return [m.filename for m in matches[:TASK_DOC_PICKS]]
