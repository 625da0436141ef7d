"""flpipeline: retrieval over project documentation and curated hint files.

Embedding-backed document search with keyword fallbacks, and LLM-mediated
selection of hint files for a task.
"""

__version__ = "0.1.0"

from flpipeline.config import EmbeddingConfig, FlpipelineConfig, LLMProviderConfig
from flpipeline.exceptions import (
    ConfigError,
    DocNotFoundError,
    DocumentNotFoundError,
    FlpipelineError,
    HintNotFoundError,
    ProviderError,
    SelectionParseError,
    StorageError,
    TierUnavailableError,
)
from flpipeline.hints import FoundHints, HintInfo, get_listing, get_relevant_hints
from flpipeline.search import (
    DocumentIndexer,
    DocumentSearcher,
    FallbackDocSearch,
    SQLiteVectorStore,
    find_relevant_docs_for_task,
)

__all__ = [
    "ConfigError",
    "DocNotFoundError",
    "DocumentIndexer",
    "DocumentNotFoundError",
    "DocumentSearcher",
    "EmbeddingConfig",
    "FallbackDocSearch",
    "FlpipelineConfig",
    "FlpipelineError",
    "FoundHints",
    "HintInfo",
    "HintNotFoundError",
    "LLMProviderConfig",
    "ProviderError",
    "SQLiteVectorStore",
    "SelectionParseError",
    "StorageError",
    "TierUnavailableError",
    "__version__",
    "find_relevant_docs_for_task",
    "get_listing",
    "get_relevant_hints",
]
