"""Search layer data types — value objects for neighbors, results and reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flpipeline.models.documents import Document


# ------------------------------------------------------------------
# Store-level
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Neighbor:
    """A nearest-neighbor hit from the vector store.

    Attributes:
        document_id: Id of the document owning the matched embedding.
        distance: Cosine distance in ``[0, 2]`` (smaller is more similar).
    """

    document_id: int
    distance: float

    @property
    def similarity(self) -> float:
        """``1 - distance``."""
        return 1.0 - self.distance


@dataclass(frozen=True, slots=True)
class StoreStats:
    """Row counts reported by the store.

    A document count that differs from the embedding count means some
    documents are waiting to be (re-)embedded.
    """

    document_count: int
    embedding_count: int

    @property
    def drift(self) -> int:
        """Documents without an embedding (negative means orphaned embeddings)."""
        return self.document_count - self.embedding_count


# ------------------------------------------------------------------
# Results
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DocSearchResult:
    """A semantic search hit, re-ranked with lexical boosts.

    Attributes:
        document: The matched document row.
        similarity: Cosine similarity (``1 - distance``).
        relevance_score: Hybrid score in ``[0, 1]`` used for ordering.
    """

    document: Document
    similarity: float
    relevance_score: float

    def to_dict(self) -> dict[str, Any]:
        """JSON shape printed by ``search-docs``."""
        return {
            "filename": self.document.filename,
            "title": self.document.title,
            "similarity": round(self.similarity, 3),
            "relevance": round(self.relevance_score, 3),
        }


@dataclass(frozen=True, slots=True)
class DocMatch:
    """A hit from any tier of the fallback chain.

    Attributes:
        filename: Path relative to the docs root.
        score: Tier-specific score (relevance for semantic, lexical points otherwise).
        tier: Name of the tier that produced the match.
    """

    filename: str
    score: float
    tier: str


@dataclass(frozen=True, slots=True)
class IndexReport:
    """Outcome of a directory indexing run.

    Attributes:
        indexed: Relative paths that were (re-)embedded.
        skipped: Relative paths whose fingerprint was unchanged.
    """

    indexed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.indexed) + len(self.skipped)
