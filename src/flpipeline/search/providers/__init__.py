"""Embedding providers — protocol, implementations and config-driven factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flpipeline.search.protocols import EmbeddingProvider
from flpipeline.search.providers.ollama import OllamaEmbedding

if TYPE_CHECKING:
    from flpipeline.config import EmbeddingConfig

__all__ = [
    "EmbeddingProvider",
    "OllamaEmbedding",
    "create_embedding_provider",
]

# Optional providers: exported only when their dependencies are installed.
try:
    from flpipeline.search.providers.openai import OpenAIEmbedding

    __all__.append("OpenAIEmbedding")
except ImportError:  # pragma: no cover
    pass

try:
    from flpipeline.search.providers.sentence_transformers import (
        SentenceTransformerEmbedding,
    )

    __all__.append("SentenceTransformerEmbedding")
except ImportError:  # pragma: no cover
    pass


def create_embedding_provider(config: EmbeddingConfig) -> EmbeddingProvider:
    """Instantiate the embedding provider named by *config*."""
    if config.provider == "openai":
        from flpipeline.search.providers.openai import OpenAIEmbedding

        kwargs: dict = {"dimensions": config.dimension, "api_key": config.api_key}
        if config.model:
            kwargs["model"] = config.model
        return OpenAIEmbedding(**kwargs)

    if config.provider == "sentence-transformers":
        from flpipeline.search.providers.sentence_transformers import (
            SentenceTransformerEmbedding,
        )

        if config.model:
            return SentenceTransformerEmbedding(config.model)
        return SentenceTransformerEmbedding()

    if config.model:
        return OllamaEmbedding(model=config.model, host=config.host, dimensions=config.dimension)
    return OllamaEmbedding(host=config.host, dimensions=config.dimension)
