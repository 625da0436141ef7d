"""SentenceTransformerEmbedding — in-process embedding provider (all-mpnet-base-v2)."""

from __future__ import annotations

from typing import Any

from flpipeline.exceptions import ProviderError

try:
    from sentence_transformers import SentenceTransformer

    _HAS_SENTENCE_TRANSFORMERS = True
except ImportError:  # pragma: no cover
    _HAS_SENTENCE_TRANSFORMERS = False

# Widths of common models, so asking for dimensions does not load weights.
_MODEL_DIMENSIONS: dict[str, int] = {
    "all-mpnet-base-v2": 768,
    "multi-qa-mpnet-base-dot-v1": 768,
    "all-MiniLM-L6-v2": 384,
}


class SentenceTransformerEmbedding:
    """Embedding provider backed by ``sentence-transformers``.

    Runs without a server, which makes it the offline choice for indexing.
    The model is loaded on the first :meth:`embed` or :meth:`embed_batch`
    call; load failures (unknown model, no network for the first download)
    surface as :class:`ProviderError`.
    """

    def __init__(self, model_name: str = "all-mpnet-base-v2") -> None:
        if not _HAS_SENTENCE_TRANSFORMERS:
            msg = (
                "sentence-transformers is required for SentenceTransformerEmbedding. "
                "Install it with: pip install sentence-transformers"
            )
            raise ImportError(msg)
        self._model_name = model_name
        self._model: SentenceTransformer | None = None

    def embed(self, text: str) -> list[float]:
        return self._encode([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return self._encode(texts)

    @property
    def dimensions(self) -> int:
        known = _MODEL_DIMENSIONS.get(self._model_name)
        if known is not None:
            return known
        dim = self._load_model().get_sentence_embedding_dimension()
        if dim is None:
            msg = f"Model {self._model_name!r} did not report embedding dimensions"
            raise ProviderError(msg)
        return dim

    @property
    def model_name(self) -> str:
        return self._model_name

    def _load_model(self) -> SentenceTransformer:
        if self._model is None:
            try:
                self._model = SentenceTransformer(self._model_name)
            except (OSError, ValueError) as exc:
                msg = f"Failed to load embedding model {self._model_name!r}: {exc}"
                raise ProviderError(msg) from exc
        return self._model

    def _encode(self, texts: list[str]) -> list[list[float]]:
        result: Any = self._load_model().encode(texts, normalize_embeddings=True)
        return [row.tolist() for row in result]
