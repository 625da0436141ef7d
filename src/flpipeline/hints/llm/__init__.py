"""LLM services for hint selection — protocol, Ollama and Claude backends, factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flpipeline.exceptions import ConfigError
from flpipeline.hints.llm.claude import ClaudeLLMService
from flpipeline.hints.llm.ollama import OllamaLLMService
from flpipeline.hints.llm.protocols import LLMResponse, LLMService

if TYPE_CHECKING:
    from flpipeline.config import LLMProviderConfig

__all__ = [
    "ClaudeLLMService",
    "LLMResponse",
    "LLMService",
    "OllamaLLMService",
    "create_llm_service",
]


def create_llm_service(config: LLMProviderConfig | None = None) -> LLMService:
    """Instantiate the service named by *config*; ``None`` gives Ollama defaults."""
    if config is None:
        return OllamaLLMService()

    if config.provider == "ollama":
        return OllamaLLMService(host=config.host, default_model=config.model)

    if config.provider in ("claude", "claude-agent"):
        return ClaudeLLMService(api_key=config.api_key, default_model=config.model)

    msg = f"Unknown LLM provider: {config.provider}"
    raise ConfigError(msg)
