"""Search layer protocols — embedding providers and fallback search tiers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from flpipeline.search.types import DocMatch


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for text-to-vector embedding.

    Implementations convert text into fixed-dimension float vectors
    suitable for cosine similarity search.  Calls are blocking; a failed
    call raises :class:`~flpipeline.exceptions.ProviderError` and is not
    retried.
    """

    def embed(self, text: str) -> list[float]:
        """Embed a single text string into a vector."""
        ...

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts into vectors, one request per text or batch."""
        ...

    @property
    def dimensions(self) -> int:
        """Number of dimensions in the embedding vectors."""
        ...

    @property
    def model_name(self) -> str:
        """Name of the embedding model."""
        ...


@runtime_checkable
class SearchTier(Protocol):
    """One link of the documentation fallback chain.

    A tier either answers (possibly with an empty list) or raises
    :class:`~flpipeline.exceptions.TierUnavailableError` so the next tier
    is consulted.
    """

    @property
    def name(self) -> str:
        """Short tier name used in logs and results."""
        ...

    def search(self, query: str, limit: int) -> list[DocMatch]:
        """Return up to *limit* matches, best first."""
        ...


# ------------------------------------------------------------------
# Capability protocols — checked via isinstance() at runtime
# ------------------------------------------------------------------


@runtime_checkable
class SupportsClose(Protocol):
    """A provider or service holding a connection that must be released."""

    def close(self) -> None:
        """Release the underlying client."""
        ...
