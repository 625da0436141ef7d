"""Tests for FlpipelineConfig builders."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from flpipeline.config import (
    DEFAULT_DOCS_DB_FILENAME,
    EmbeddingConfig,
    FlpipelineConfig,
    LLMProviderConfig,
)
from flpipeline.exceptions import ConfigError


class TestDefaults:
    def test_paths(self, tmp_path: Path):
        config = FlpipelineConfig(project_root=tmp_path)
        assert config.db_path == tmp_path / DEFAULT_DOCS_DB_FILENAME
        assert config.default_hints_root == tmp_path / "hints"
        assert config.llm_provider is None
        assert config.embedding == EmbeddingConfig()

    def test_docs_path_prefers_specs(self, tmp_path: Path):
        config = FlpipelineConfig(project_root=tmp_path)
        assert config.resolve_docs_path() == tmp_path / "docs"
        (tmp_path / "specs").mkdir()
        assert config.resolve_docs_path() == tmp_path / "specs"

    def test_explicit_docs_path(self, tmp_path: Path):
        config = FlpipelineConfig(project_root=tmp_path, docs_path=tmp_path / "manual")
        assert config.resolve_docs_path() == tmp_path / "manual"


class TestFromEnv:
    def test_reads_variables(self, tmp_path: Path):
        config = FlpipelineConfig.from_env(
            tmp_path,
            environ={
                "FLPIPELINE_DOCS_DB": "search.db",
                "FLPIPELINE_DOCS_PATH": "handbook",
                "FLPIPELINE_HINTS_ROOT": "/opt/hints",
                "FLPIPELINE_EMBEDDING_PROVIDER": "openai",
                "OPENAI_API_KEY": "sk-o",
                "FLPIPELINE_LLM_PROVIDER": "claude",
                "FLPIPELINE_LLM_MODEL": "claude-3-5-sonnet-20241022",
                "ANTHROPIC_API_KEY": "sk-a",
            },
        )
        assert config.db_path == tmp_path / "search.db"
        assert config.docs_path == tmp_path / "handbook"
        assert config.hints_root == Path("/opt/hints")
        assert config.embedding.provider == "openai"
        assert config.embedding.api_key == "sk-o"
        assert config.llm_provider == LLMProviderConfig(
            provider="claude", model="claude-3-5-sonnet-20241022", api_key="sk-a"
        )

    def test_empty_environment(self, tmp_path: Path):
        config = FlpipelineConfig.from_env(tmp_path, environ={})
        assert config == FlpipelineConfig(project_root=tmp_path)

    def test_unknown_provider(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Unknown LLM provider"):
            FlpipelineConfig.from_env(tmp_path, environ={"FLPIPELINE_LLM_PROVIDER": "gpt"})


class TestFromFile:
    def test_loads_camel_case_keys(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        path = tmp_path / ".flpipeline.json"
        path.write_text(
            json.dumps(
                {
                    "docsDbFilename": ".custom.db",
                    "hintPaths": ["~/hints", "extra/one.md"],
                    "llmProvider": {"provider": "ollama", "model": "llama3", "host": "http://h:1"},
                    "embedding": {"provider": "sentence-transformers", "model": "all-mpnet-base-v2"},
                }
            ),
            encoding="utf-8",
        )

        config = FlpipelineConfig.from_file(path, environ={})

        assert config.project_root == tmp_path.resolve()
        assert config.docs_db_filename == ".custom.db"
        assert config.hint_paths == (str(tmp_path / "home" / "hints"), "extra/one.md")
        assert config.llm_provider == LLMProviderConfig(
            provider="ollama", host="http://h:1", model="llama3"
        )
        assert config.embedding.provider == "sentence-transformers"
        assert config.embedding.dimension == 768

    def test_local_state_db_key(self, tmp_path: Path):
        path = tmp_path / "c.json"
        path.write_text('{"localStateDbFilename": "state.db"}', encoding="utf-8")
        assert FlpipelineConfig.from_file(path, environ={}).docs_db_filename == "state.db"

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "c.json"
        path.write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            FlpipelineConfig.from_file(path)

    def test_not_an_object(self, tmp_path: Path):
        path = tmp_path / "c.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigError, match="JSON object"):
            FlpipelineConfig.from_file(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Could not read"):
            FlpipelineConfig.from_file(tmp_path / "absent.json")

    @pytest.mark.parametrize("value", ["wide", None, [768]])
    def test_non_numeric_dimension(self, tmp_path: Path, value: object):
        path = tmp_path / "c.json"
        path.write_text(json.dumps({"embedding": {"dimension": value}}), encoding="utf-8")
        with pytest.raises(ConfigError, match="must be an integer"):
            FlpipelineConfig.from_file(path, environ={})

    def test_negative_dimension(self, tmp_path: Path):
        path = tmp_path / "c.json"
        path.write_text('{"embedding": {"dimension": -1}}', encoding="utf-8")
        with pytest.raises(ConfigError, match="must be positive"):
            FlpipelineConfig.from_file(path, environ={})
