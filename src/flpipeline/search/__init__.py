"""Documentation search layer — indexer, searcher, fallback chain, stores, providers."""

from flpipeline.search._cascade import (
    FallbackDocSearch,
    FilesystemLexicalTier,
    SemanticTier,
    StoredLexicalTier,
    find_relevant_docs_for_task,
)
from flpipeline.search._indexer import DocumentIndexer
from flpipeline.search._searcher import DocumentSearcher, relevance_score
from flpipeline.search.protocols import EmbeddingProvider, SearchTier, SupportsClose
from flpipeline.search.stores.sqlite import SQLiteVectorStore
from flpipeline.search.text import chunk_text, preprocess_text
from flpipeline.search.types import (
    DocMatch,
    DocSearchResult,
    IndexReport,
    Neighbor,
    StoreStats,
)

__all__ = [
    "DocMatch",
    "DocSearchResult",
    "DocumentIndexer",
    "DocumentSearcher",
    "EmbeddingProvider",
    "FallbackDocSearch",
    "FilesystemLexicalTier",
    "IndexReport",
    "Neighbor",
    "SQLiteVectorStore",
    "SearchTier",
    "SemanticTier",
    "StoredLexicalTier",
    "StoreStats",
    "SupportsClose",
    "chunk_text",
    "find_relevant_docs_for_task",
    "preprocess_text",
    "relevance_score",
]
