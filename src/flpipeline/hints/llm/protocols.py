"""LLM service protocol used by hint selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class LLMResponse:
    """Text returned by a generation call.

    Attributes:
        text: The generated text.
        metadata: Provider-reported details: ``model``, ``tokens_used``,
            ``input_tokens``, ``output_tokens`` when available.
    """

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class LLMService(Protocol):
    """A text-generation backend.

    ``generate`` raises :class:`~flpipeline.exceptions.ProviderError` on any
    failure and never retries.
    """

    def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion for *prompt*."""
        ...

    @property
    def provider_name(self) -> str:
        """Human-readable provider name (``"Ollama"``, ``"Claude"``)."""
        ...

    def is_available(self) -> bool:
        """Return ``True`` if the backend answers; never raises."""
        ...
