"""OllamaLLMService — text generation through a local Ollama server."""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from flpipeline.config import DEFAULT_OLLAMA_HOST
from flpipeline.exceptions import ProviderError
from flpipeline.hints.llm.protocols import LLMResponse

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_MODEL = "llama2"
DEFAULT_TEMPERATURE = 0.3


class OllamaLLMService:
    """Calls ``/api/generate`` with streaming disabled."""

    def __init__(
        self,
        *,
        host: str | None = None,
        default_model: str | None = None,
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._host = host or os.environ.get("OLLAMA_HOST") or DEFAULT_OLLAMA_HOST
        self._default_model = default_model or DEFAULT_OLLAMA_MODEL
        self._client = client or httpx.Client(base_url=self._host, timeout=timeout)

    @property
    def provider_name(self) -> str:
        return "Ollama"

    @property
    def default_model(self) -> str:
        return self._default_model

    def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        options: dict[str, Any] = {
            "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
        }
        if max_tokens:
            options["num_predict"] = max_tokens

        try:
            resp = self._client.post(
                "/api/generate",
                json={
                    "model": model or self._default_model,
                    "prompt": prompt,
                    "stream": False,
                    "options": options,
                },
            )
            resp.raise_for_status()
            data: dict[str, Any] = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            msg = f"Ollama generation failed: {exc}"
            raise ProviderError(msg) from exc

        text = data.get("response")
        if not isinstance(text, str):
            msg = "Ollama generation failed: response has no text"
            raise ProviderError(msg)

        return LLMResponse(
            text=text.strip(),
            metadata={
                "model": data.get("model", model or self._default_model),
                "tokens_used": data.get("eval_count"),
                "input_tokens": data.get("prompt_eval_count"),
                "output_tokens": data.get("eval_count"),
            },
        )

    def is_available(self) -> bool:
        try:
            resp = self._client.get("/api/tags")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug("Ollama not reachable at %s: %s", self._host, exc)
            return False
        return True

    def list_models(self) -> list[str]:
        """Names of the models pulled on the server."""
        try:
            resp = self._client.get("/api/tags")
            resp.raise_for_status()
            models = resp.json().get("models", [])
        except (httpx.HTTPError, ValueError) as exc:
            msg = f"Failed to list Ollama models: {exc}"
            raise ProviderError(msg) from exc
        return [m.get("name", "") for m in models]

    def close(self) -> None:
        self._client.close()
