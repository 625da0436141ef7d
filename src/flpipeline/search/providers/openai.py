"""OpenAIEmbedding — embedding provider backed by OpenAI's API."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from flpipeline.config import DEFAULT_EMBEDDING_DIMENSION
from flpipeline.exceptions import ConfigError, ProviderError

try:
    from openai import OpenAI, OpenAIError

    _HAS_OPENAI = True
except ImportError:  # pragma: no cover
    _HAS_OPENAI = False

if TYPE_CHECKING:
    from openai import OpenAI as OpenAIType


class OpenAIEmbedding:
    """Embedding provider backed by the OpenAI Embeddings API.

    ``text-embedding-3-*`` models accept a ``dimensions`` argument, so the
    default asks for 768-wide vectors to fit the documentation store.  The
    client is created with ``max_retries=0``: failures surface immediately
    as :class:`ProviderError`.
    """

    def __init__(
        self,
        *,
        model: str = "text-embedding-3-small",
        dimensions: int = DEFAULT_EMBEDDING_DIMENSION,
        api_key: str | None = None,
        timeout: float = 60.0,
        batch_size: int = 512,
    ) -> None:
        if not _HAS_OPENAI:
            msg = "openai is required for OpenAIEmbedding. Install it with: pip install openai"
            raise ImportError(msg)

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not resolved_key:
            msg = (
                "No OpenAI API key provided. Pass api_key= or set the "
                "OPENAI_API_KEY environment variable."
            )
            raise ConfigError(msg)

        self._model = model
        self._dimensions = dimensions
        self._batch_size = batch_size
        self._client: OpenAIType = OpenAI(
            api_key=resolved_key,
            max_retries=0,
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # EmbeddingProvider protocol
    # ------------------------------------------------------------------

    def embed(self, text: str) -> list[float]:
        """Embed a single text string via the OpenAI API."""
        return self._call_api([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts, chunking at *batch_size* per API call."""
        if not texts:
            return []

        all_vectors: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            chunk = texts[start : start + self._batch_size]
            all_vectors.extend(self._call_api(chunk))
        return all_vectors

    @property
    def dimensions(self) -> int:
        """Return the embedding dimensionality."""
        return self._dimensions

    @property
    def model_name(self) -> str:
        """Return the model name."""
        return self._model

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _call_api(self, texts: list[str]) -> list[list[float]]:
        """Call the OpenAI embeddings endpoint and return ordered vectors."""
        kwargs: dict[str, Any] = {
            "input": texts,
            "model": self._model,
            "dimensions": self._dimensions,
        }
        try:
            response = self._client.embeddings.create(**kwargs)
        except OpenAIError as exc:
            msg = f"Failed to generate embedding: {exc}"
            raise ProviderError(msg) from exc

        # Sort by index to ensure order matches input
        sorted_data = sorted(response.data, key=lambda e: e.index)
        return [item.embedding for item in sorted_data]
