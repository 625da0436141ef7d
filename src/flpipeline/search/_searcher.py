"""DocumentSearcher — embedding search re-ranked with filename and title boosts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flpipeline.search.text import normalized_filename, preprocess_text
from flpipeline.search.types import DocSearchResult

if TYPE_CHECKING:
    from flpipeline.models.documents import Document
    from flpipeline.search.protocols import EmbeddingProvider
    from flpipeline.search.stores.sqlite import SQLiteVectorStore

logger = logging.getLogger(__name__)

# Whole-query substring boosts.
TITLE_MATCH_BOOST = 0.2
FILENAME_MATCH_BOOST = 0.35

# Per-token boosts, scaled by the fraction of query tokens found.
TITLE_TOKEN_WEIGHT = 0.15
CONTENT_TOKEN_WEIGHT = 0.08
FILENAME_TOKEN_WEIGHT = 0.3

MIN_TOKEN_LENGTH = 3


def relevance_score(query: str, document: Document, similarity: float) -> float:
    """Combine cosine *similarity* with lexical boosts, clamped to ``[0, 1]``.

    Filename matches weigh more than title matches: filenames are curated
    identifiers, so a query that names a file should find it even when raw
    similarity slightly favors another document.
    """
    score = similarity

    query_lower = query.lower()
    title_lower = document.title.lower()
    content_lower = document.content.lower()
    filename_lower = normalized_filename(document.filename)

    if query_lower in title_lower:
        score += TITLE_MATCH_BOOST
    if query_lower in filename_lower:
        score += FILENAME_MATCH_BOOST

    words = [w for w in query_lower.split() if len(w) >= MIN_TOKEN_LENGTH]
    if words:
        title_hits = sum(1 for w in words if w in title_lower)
        content_hits = sum(1 for w in words if w in content_lower)
        filename_hits = sum(1 for w in words if w in filename_lower)
        score += (title_hits / len(words)) * TITLE_TOKEN_WEIGHT
        score += (content_hits / len(words)) * CONTENT_TOKEN_WEIGHT
        score += (filename_hits / len(words)) * FILENAME_TOKEN_WEIGHT

    return max(0.0, min(score, 1.0))


class DocumentSearcher:
    """Answers free-text queries against a :class:`SQLiteVectorStore`."""

    def __init__(self, store: SQLiteVectorStore, embedding_provider: EmbeddingProvider) -> None:
        self._store = store
        self._embedding_provider = embedding_provider

    def search(
        self,
        query: str,
        limit: int = 10,
        min_similarity: float = 0.5,
    ) -> list[DocSearchResult]:
        """Return up to *limit* documents ranked by hybrid relevance.

        ``2 * limit`` neighbors are fetched so that the similarity floor and
        re-ranking can still fill the result.
        """
        vector = self._embedding_provider.embed(preprocess_text(query))
        neighbors = self._store.nearest_neighbors(vector, limit * 2)

        results: list[DocSearchResult] = []
        for neighbor in neighbors:
            document = self._store.get_document(neighbor.document_id)
            if document is None:
                logger.debug("Embedding for missing document %d skipped", neighbor.document_id)
                continue
            similarity = neighbor.similarity
            if similarity < min_similarity:
                continue
            results.append(
                DocSearchResult(
                    document=document,
                    similarity=similarity,
                    relevance_score=relevance_score(query, document, similarity),
                )
            )

        results.sort(key=lambda r: r.relevance_score, reverse=True)
        return results[:limit]
