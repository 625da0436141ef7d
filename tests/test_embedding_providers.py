"""Tests for embedding providers."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from flpipeline.config import EmbeddingConfig
from flpipeline.exceptions import ConfigError, ProviderError
from flpipeline.search.protocols import EmbeddingProvider
from flpipeline.search.providers import create_embedding_provider
from flpipeline.search.providers.ollama import OllamaEmbedding

# ==================================================================
# Ollama provider
# ==================================================================


class TestOllamaEmbedding:
    def _make_provider(self, handler, **kwargs) -> OllamaEmbedding:
        client = httpx.Client(base_url="http://ollama.test", transport=httpx.MockTransport(handler))
        return OllamaEmbedding(client=client, **kwargs)

    def test_embed_posts_model_and_prompt(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/embeddings"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"embedding": [0.5, 0.25]})

        provider = self._make_provider(handler)

        assert provider.embed("hello") == [0.5, 0.25]
        assert bodies == [{"model": "nomic-embed-text", "prompt": "hello"}]

    def test_embed_batch_one_request_per_text(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json={"embedding": [float(calls)]})

        provider = self._make_provider(handler)
        assert provider.embed_batch(["a", "b", "c"]) == [[1.0], [2.0], [3.0]]
        assert calls == 3

    def test_http_error(self):
        provider = self._make_provider(lambda r: httpx.Response(500, text="boom"))
        with pytest.raises(ProviderError, match="Failed to generate embedding"):
            provider.embed("x")

    def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = self._make_provider(handler)
        with pytest.raises(ProviderError, match="connection refused"):
            provider.embed("x")

    def test_missing_embedding_key(self):
        provider = self._make_provider(lambda r: httpx.Response(200, json={"error": "no model"}))
        with pytest.raises(ProviderError):
            provider.embed("x")

    def test_dimensions(self):
        provider = self._make_provider(lambda r: httpx.Response(200))
        assert provider.dimensions == 768
        assert provider.model_name == "nomic-embed-text"

        custom = self._make_provider(lambda r: httpx.Response(200), model="custom-model")
        with pytest.raises(ValueError, match="dimensions"):
            _ = custom.dimensions

    def test_host_from_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")
        provider = OllamaEmbedding()
        assert provider._host == "http://gpu-box:11434"
        provider.close()

    def test_protocol(self):
        assert isinstance(self._make_provider(lambda r: httpx.Response(200)), EmbeddingProvider)


# ==================================================================
# OpenAI provider
# ==================================================================


class TestOpenAIEmbedding:
    def _make_provider(self, **kwargs):
        from flpipeline.search.providers.openai import OpenAIEmbedding

        return OpenAIEmbedding(api_key="sk-test-key", **kwargs)

    def _mock_response(self, vectors: list[list[float]]):
        mock_resp = MagicMock()
        mock_data = []
        for i, vec in enumerate(vectors):
            item = MagicMock()
            item.embedding = vec
            item.index = i
            mock_data.append(item)
        mock_resp.data = list(reversed(mock_data))
        return mock_resp

    def test_embed_single_text(self):
        provider = self._make_provider()
        provider._client.embeddings.create = MagicMock(return_value=self._mock_response([[0.1, 0.2]]))

        assert provider.embed("hello") == [0.1, 0.2]
        call_kwargs = provider._client.embeddings.create.call_args[1]
        assert call_kwargs == {
            "input": ["hello"],
            "model": "text-embedding-3-small",
            "dimensions": 768,
        }

    def test_batch_sorted_by_index_and_chunked(self):
        provider = self._make_provider(batch_size=2)
        provider._client.embeddings.create = MagicMock(
            side_effect=lambda **kw: self._mock_response([[float(len(t))] for t in kw["input"]])
        )

        result = provider.embed_batch(["a", "bb", "ccc"])

        assert result == [[1.0], [2.0], [3.0]]
        assert provider._client.embeddings.create.call_count == 2

    def test_api_error_wrapped(self):
        from openai import APIConnectionError

        provider = self._make_provider()
        provider._client.embeddings.create = MagicMock(
            side_effect=APIConnectionError(request=httpx.Request("POST", "https://api.openai.com"))
        )
        with pytest.raises(ProviderError):
            provider.embed("x")

    def test_missing_key(self, monkeypatch: pytest.MonkeyPatch):
        from flpipeline.search.providers.openai import OpenAIEmbedding

        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ConfigError):
            OpenAIEmbedding()

    def test_no_client_retries(self):
        assert self._make_provider()._client.max_retries == 0


# ==================================================================
# Sentence-transformers provider
# ==================================================================


class TestSentenceTransformerEmbedding:
    def test_lazy_load_and_encode(self):
        import numpy as np

        from flpipeline.search.providers.sentence_transformers import (
            SentenceTransformerEmbedding,
        )

        model = MagicMock()
        model.encode.return_value = np.array([[0.5, 0.5]], dtype=np.float32)
        model.get_sentence_embedding_dimension.return_value = 768

        with patch(
            "flpipeline.search.providers.sentence_transformers.SentenceTransformer",
            return_value=model,
        ) as ctor:
            provider = SentenceTransformerEmbedding()
            ctor.assert_not_called()
            assert provider.embed("hi") == [0.5, 0.5]
            assert provider.dimensions == 768
            ctor.assert_called_once_with("all-mpnet-base-v2")

    def test_load_failure(self):
        from flpipeline.search.providers.sentence_transformers import (
            SentenceTransformerEmbedding,
        )

        with patch(
            "flpipeline.search.providers.sentence_transformers.SentenceTransformer",
            side_effect=OSError("no such model"),
        ):
            with pytest.raises(ProviderError, match="no such model"):
                SentenceTransformerEmbedding("missing/model").embed("x")


# ==================================================================
# Factory
# ==================================================================


class TestCreateEmbeddingProvider:
    def test_default_ollama(self):
        provider = create_embedding_provider(EmbeddingConfig())
        assert isinstance(provider, OllamaEmbedding)
        assert provider.model_name == "nomic-embed-text"
        assert provider.dimensions == 768

    def test_openai(self):
        from flpipeline.search.providers.openai import OpenAIEmbedding

        provider = create_embedding_provider(EmbeddingConfig(provider="openai", api_key="sk-x"))
        assert isinstance(provider, OpenAIEmbedding)
        assert provider.dimensions == 768

    def test_unknown_provider(self):
        with pytest.raises(ConfigError):
            EmbeddingConfig(provider="cohere")
