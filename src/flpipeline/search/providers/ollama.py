"""OllamaEmbedding — embedding provider backed by a local Ollama server."""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from flpipeline.config import DEFAULT_EMBEDDING_MODEL, DEFAULT_OLLAMA_HOST
from flpipeline.exceptions import ProviderError

logger = logging.getLogger(__name__)

# Default dimensions per model when the user does not specify.
_MODEL_DEFAULTS: dict[str, int] = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
}


class OllamaEmbedding:
    """Embedding provider calling Ollama's ``/api/embeddings`` endpoint.

    Each text is one request of the form ``{"model": ..., "prompt": ...}``.
    Failures of any kind (connection refused, unknown model, timeout,
    malformed body) surface as :class:`ProviderError`; nothing is retried.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_EMBEDDING_MODEL,
        host: str | None = None,
        dimensions: int | None = None,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._model = model
        self._dimensions = dimensions
        self._host = host or os.environ.get("OLLAMA_HOST") or DEFAULT_OLLAMA_HOST
        self._client = client or httpx.Client(base_url=self._host, timeout=timeout)

    # ------------------------------------------------------------------
    # EmbeddingProvider protocol
    # ------------------------------------------------------------------

    def embed(self, text: str) -> list[float]:
        """Embed a single text string."""
        return self._call_api(text)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts, one request at a time."""
        return [self._call_api(text) for text in texts]

    @property
    def dimensions(self) -> int:
        """Return the embedding dimensionality."""
        if self._dimensions is not None:
            return self._dimensions
        default = _MODEL_DEFAULTS.get(self._model)
        if default is not None:
            return default
        msg = f"Unknown default dimensions for model {self._model!r}. Pass dimensions= explicitly."
        raise ValueError(msg)

    @property
    def model_name(self) -> str:
        """Return the model name."""
        return self._model

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _call_api(self, text: str) -> list[float]:
        try:
            resp = self._client.post(
                "/api/embeddings",
                json={"model": self._model, "prompt": text},
            )
            resp.raise_for_status()
            data: dict[str, Any] = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("Ollama embedding request to %s failed", self._host, exc_info=True)
            msg = f"Failed to generate embedding: {exc}"
            raise ProviderError(msg) from exc

        embedding = data.get("embedding")
        if not isinstance(embedding, list) or not embedding:
            msg = f"Failed to generate embedding: no embedding in response for model {self._model!r}"
            raise ProviderError(msg)
        return [float(x) for x in embedding]
