"""ClaudeLLMService — text generation through the Anthropic Messages API."""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from flpipeline.exceptions import ConfigError, ProviderError
from flpipeline.hints.llm.protocols import LLMResponse

logger = logging.getLogger(__name__)

ANTHROPIC_BASE_URL = "https://api.anthropic.com/v1"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_CLAUDE_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.3


class ClaudeLLMService:
    """Single-message ``/v1/messages`` calls with an API key.

    The key comes from the argument or ``ANTHROPIC_API_KEY``; without one the
    constructor raises :class:`ConfigError`.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        default_model: str | None = None,
        base_url: str = ANTHROPIC_BASE_URL,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        if not key:
            msg = (
                "ANTHROPIC_API_KEY is required for Claude service. "
                "Set it in the config file or as an environment variable."
            )
            raise ConfigError(msg)

        self._default_model = default_model or DEFAULT_CLAUDE_MODEL
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "x-api-key": key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
        )

    @property
    def provider_name(self) -> str:
        return "Claude"

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
        try:
            data = self._create_message(
                model=model or self._default_model,
                max_tokens=max_tokens or DEFAULT_MAX_TOKENS,
                temperature=DEFAULT_TEMPERATURE if temperature is None else temperature,
                prompt=prompt,
            )
        except (httpx.HTTPError, ValueError) as exc:
            msg = f"Claude API generation failed: {exc}"
            raise ProviderError(msg) from exc

        text = ""
        for block in data.get("content", []):
            if block.get("type") == "text":
                text = block.get("text", "")
                break

        usage = data.get("usage", {})
        input_tokens = usage.get("input_tokens")
        output_tokens = usage.get("output_tokens")
        tokens_used = None
        if input_tokens is not None and output_tokens is not None:
            tokens_used = input_tokens + output_tokens

        return LLMResponse(
            text=text,
            metadata={
                "model": data.get("model", model or self._default_model),
                "tokens_used": tokens_used,
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
            },
        )

    def is_available(self) -> bool:
        """Probe the API with a one-token request."""
        try:
            self._create_message(
                model=self._default_model, max_tokens=1, temperature=None, prompt="test"
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("Claude API not available: %s", exc)
            return False
        return True

    def close(self) -> None:
        self._client.close()

    def _create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        temperature: float | None,
        prompt: str,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if temperature is not None:
            body["temperature"] = temperature
        resp = self._client.post("/messages", json=body)
        resp.raise_for_status()
        return resp.json()
