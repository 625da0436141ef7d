"""Shared fixtures for flpipeline tests."""

from __future__ import annotations

import hashlib
import math
from typing import TYPE_CHECKING

import pytest

from flpipeline.config import FlpipelineConfig
from flpipeline.exceptions import ProviderError
from flpipeline.search.stores.sqlite import SQLiteVectorStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

DIM = 768


class FakeProvider:
    """Deterministic embedding provider: SHA-256 of the text stretched to 768 floats."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return self._hash_to_vector(text)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [self.embed(t) for t in texts]

    @property
    def dimensions(self) -> int:
        return DIM

    @property
    def model_name(self) -> str:
        return "fake"

    @staticmethod
    def _hash_to_vector(text: str) -> list[float]:
        raw: list[float] = []
        counter = 0
        while len(raw) < DIM:
            h = hashlib.sha256(f"{counter}:{text}".encode()).digest()
            raw.extend(float(b) for b in h)
            counter += 1
        raw = raw[:DIM]
        norm = math.sqrt(sum(x * x for x in raw))
        return [x / norm for x in raw]


class ScriptedProvider:
    """Embedding provider whose vectors come from a caller-supplied function."""

    def __init__(self, fn: Callable[[str], list[float]]) -> None:
        self._fn = fn

    def embed(self, text: str) -> list[float]:
        return self._fn(text)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [self._fn(t) for t in texts]

    @property
    def dimensions(self) -> int:
        return DIM

    @property
    def model_name(self) -> str:
        return "scripted"


class FailingProvider:
    """Embedding provider that always fails like an unreachable server."""

    def embed(self, text: str) -> list[float]:
        msg = "Failed to generate embedding: connection refused"
        raise ProviderError(msg)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [self.embed(t) for t in texts]

    @property
    def dimensions(self) -> int:
        return DIM

    @property
    def model_name(self) -> str:
        return "failing"


def unit_vector(*components: float) -> list[float]:
    """A DIM-wide vector with the given leading components, zero elsewhere."""
    vec = [0.0] * DIM
    for i, value in enumerate(components):
        vec[i] = value
    return vec


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SQLiteVectorStore]:
    """File-backed store in a temp directory, closed after the test."""
    s = SQLiteVectorStore(tmp_path / ".docs.db", dimension=DIM)
    yield s
    s.close()


@pytest.fixture
def docs_root(tmp_path: Path) -> Path:
    """A small documentation tree."""
    root = tmp_path / "docs"
    (root / "guides").mkdir(parents=True)
    (root / "guides" / "error-handling.md").write_text(
        "# Error Handling Guide\n\nWrap provider failures and never retry silently.\n",
        encoding="utf-8",
    )
    (root / "database-migrations.md").write_text(
        "# Database Migrations\n\nAdd columns with ALTER TABLE when they are missing.\n",
        encoding="utf-8",
    )
    (root / "overview.md").write_text(
        "# Overview\n\nThe pipeline indexes docs and selects hints.\n",
        encoding="utf-8",
    )
    (root / "notes.txt").write_text("not markdown", encoding="utf-8")
    return root


@pytest.fixture
def config(tmp_path: Path, docs_root: Path) -> FlpipelineConfig:
    return FlpipelineConfig(project_root=tmp_path, docs_path=docs_root)
