"""Configuration values threaded into stores, providers, and commands.

Nothing here is module-level mutable state: callers build a
:class:`FlpipelineConfig` once at startup (from the environment or from an
explicitly named JSON file) and pass it down.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from flpipeline.exceptions import ConfigError

DEFAULT_DOCS_DB_FILENAME = ".docs.db"
DEFAULT_EMBEDDING_MODEL = "nomic-embed-text"
DEFAULT_EMBEDDING_DIMENSION = 768
DEFAULT_OLLAMA_HOST = "http://localhost:11434"

_LLM_PROVIDERS = ("ollama", "claude", "claude-agent")
_EMBEDDING_PROVIDERS = ("ollama", "openai", "sentence-transformers")


@dataclass(frozen=True, slots=True)
class EmbeddingConfig:
    """Which embedding backend to use for the documentation pipeline.

    Attributes:
        provider: ``"ollama"``, ``"openai"`` or ``"sentence-transformers"``.
        model: Embedding model name. ``None`` selects the provider default.
        host: Base URL for HTTP providers (Ollama).
        dimension: Vector width stored in the database.
        api_key: Credential for hosted providers.
    """

    provider: str = "ollama"
    model: str | None = None
    host: str | None = None
    dimension: int = DEFAULT_EMBEDDING_DIMENSION
    api_key: str | None = None

    def __post_init__(self) -> None:
        if self.provider not in _EMBEDDING_PROVIDERS:
            msg = (
                f"Unknown embedding provider: {self.provider!r}. "
                f"Supported: {', '.join(_EMBEDDING_PROVIDERS)}"
            )
            raise ConfigError(msg)


@dataclass(frozen=True, slots=True)
class LLMProviderConfig:
    """LLM used for hint selection.

    Attributes:
        provider: ``"ollama"``, ``"claude"`` or ``"claude-agent"`` (alias of ``"claude"``).
        host: Ollama base URL.
        model: Default model for the provider.
        api_key: Anthropic API key (falls back to ``ANTHROPIC_API_KEY``).
    """

    provider: str = "ollama"
    host: str | None = None
    model: str | None = None
    api_key: str | None = None

    def __post_init__(self) -> None:
        if self.provider not in _LLM_PROVIDERS:
            msg = f"Unknown LLM provider: {self.provider!r}. Supported: {', '.join(_LLM_PROVIDERS)}"
            raise ConfigError(msg)


@dataclass(frozen=True, slots=True)
class FlpipelineConfig:
    """Process-wide settings for the docs and hints subsystems.

    Attributes:
        project_root: Directory relative paths are resolved against.
        docs_db_filename: Database file name (or absolute path) for the doc store.
        docs_path: Documentation root. ``None`` means ``specs/`` with ``docs/`` fallback.
        hints_root: Directory holding the default hint files.
        hint_paths: Extra hint files or directories.
        embedding: Embedding backend settings.
        llm_provider: Hint-selection LLM settings. ``None`` means Ollama defaults.
    """

    project_root: Path = field(default_factory=Path.cwd)
    docs_db_filename: str = DEFAULT_DOCS_DB_FILENAME
    docs_path: Path | None = None
    hints_root: Path | None = None
    hint_paths: tuple[str, ...] = ()
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    llm_provider: LLMProviderConfig | None = None

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def db_path(self) -> Path:
        """Absolute path of the document store file."""
        return self.project_root / self.docs_db_filename

    def resolve_docs_path(self) -> Path:
        """Return the documentation root, preferring ``specs/`` then ``docs/``."""
        if self.docs_path is not None:
            return self.docs_path
        specs = self.project_root / "specs"
        if specs.exists():
            return specs
        return self.project_root / "docs"

    @property
    def default_hints_root(self) -> Path:
        """Directory searched for hints when no explicit root is configured."""
        return self.hints_root if self.hints_root is not None else self.project_root / "hints"

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    @classmethod
    def from_env(
        cls,
        project_root: str | Path | None = None,
        environ: dict[str, str] | None = None,
    ) -> FlpipelineConfig:
        """Build a config from defaults overridden by ``FLPIPELINE_*`` variables."""
        env = os.environ if environ is None else environ
        root = Path(project_root) if project_root is not None else Path.cwd()

        docs_path = env.get("FLPIPELINE_DOCS_PATH")
        hints_root = env.get("FLPIPELINE_HINTS_ROOT")
        embedding = EmbeddingConfig(
            provider=env.get("FLPIPELINE_EMBEDDING_PROVIDER", "ollama"),
            model=env.get("FLPIPELINE_EMBEDDING_MODEL") or None,
            host=env.get("OLLAMA_HOST") or None,
            api_key=env.get("OPENAI_API_KEY") or None,
        )
        llm_provider = None
        if env.get("FLPIPELINE_LLM_PROVIDER"):
            llm_provider = LLMProviderConfig(
                provider=env["FLPIPELINE_LLM_PROVIDER"],
                host=env.get("OLLAMA_HOST") or None,
                model=env.get("FLPIPELINE_LLM_MODEL") or None,
                api_key=env.get("ANTHROPIC_API_KEY") or None,
            )

        return cls(
            project_root=root,
            docs_db_filename=env.get("FLPIPELINE_DOCS_DB", DEFAULT_DOCS_DB_FILENAME),
            docs_path=_resolve(root, docs_path) if docs_path else None,
            hints_root=_resolve(root, hints_root) if hints_root else None,
            embedding=embedding,
            llm_provider=llm_provider,
        )

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        environ: dict[str, str] | None = None,
    ) -> FlpipelineConfig:
        """Load an explicitly named ``.flpipeline.json`` file.

        The project root is the directory holding the file.  Keys mirror the
        JSON format used by the worktree tooling (``docsDbFilename``,
        ``hintPaths``, ``llmProvider``...).  Environment values fill gaps the
        file leaves open.
        """
        config_path = Path(path)
        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
        except OSError as exc:
            msg = f"Could not read config file {config_path}: {exc}"
            raise ConfigError(msg) from exc
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON in config file {config_path}: {exc}"
            raise ConfigError(msg) from exc
        if not isinstance(raw, dict):
            msg = f"Config file {config_path} must contain a JSON object"
            raise ConfigError(msg)

        base = cls.from_env(config_path.resolve().parent, environ)
        return base.merged_with(raw)

    def merged_with(self, raw: dict[str, Any]) -> FlpipelineConfig:
        """Return a copy with values from a parsed JSON config applied."""
        updates: dict[str, Any] = {}
        root = self.project_root

        db_name = raw.get("docsDbFilename") or raw.get("localStateDbFilename")
        if db_name:
            updates["docs_db_filename"] = str(db_name)
        if raw.get("docsPath"):
            updates["docs_path"] = _resolve(root, raw["docsPath"])
        if raw.get("hintsRoot"):
            updates["hints_root"] = _resolve(root, raw["hintsRoot"])
        if raw.get("hintPaths"):
            updates["hint_paths"] = tuple(_expand_home(str(p)) for p in raw["hintPaths"])

        embedding = raw.get("embedding")
        if isinstance(embedding, dict):
            updates["embedding"] = EmbeddingConfig(
                provider=embedding.get("provider", self.embedding.provider),
                model=embedding.get("model", self.embedding.model),
                host=embedding.get("host", self.embedding.host),
                dimension=_dimension(embedding.get("dimension", self.embedding.dimension)),
                api_key=embedding.get("apiKey", self.embedding.api_key),
            )

        llm = raw.get("llmProvider")
        if isinstance(llm, dict):
            previous = self.llm_provider or LLMProviderConfig()
            updates["llm_provider"] = LLMProviderConfig(
                provider=llm.get("provider", previous.provider),
                host=llm.get("host", previous.host),
                model=llm.get("model", previous.model),
                api_key=llm.get("apiKey", previous.api_key),
            )

        return replace(self, **updates)


def _dimension(value: Any) -> int:
    try:
        dimension = int(value)
    except (TypeError, ValueError) as exc:
        msg = f"Embedding dimension must be an integer, got {value!r}"
        raise ConfigError(msg) from exc
    if dimension <= 0:
        msg = f"Embedding dimension must be positive, got {dimension}"
        raise ConfigError(msg)
    return dimension


def _expand_home(path: str) -> str:
    return os.path.expanduser(path) if path.startswith("~") else path


def _resolve(root: Path, path: str) -> Path:
    p = Path(_expand_home(path))
    return p if p.is_absolute() else root / p
