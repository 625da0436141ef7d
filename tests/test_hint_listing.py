"""Tests for hint discovery and frontmatter parsing."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from flpipeline.config import FlpipelineConfig
from flpipeline.hints.listing import (
    DEFAULT_DESCRIPTION,
    HintInfo,
    get_listing,
    hint_patterns,
    parse_frontmatter,
)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestParseFrontmatter:
    def test_fenced_block(self):
        data, body = parse_frontmatter("---\ndescription: Retry rules\n---\n# Body\n")
        assert data == {"description": "Retry rules"}
        assert body == "# Body\n"

    def test_no_block(self):
        assert parse_frontmatter("# Just text\n") == ({}, "# Just text\n")

    def test_empty_block(self):
        assert parse_frontmatter("---\n---\nbody") == ({}, "body")

    def test_non_mapping_block(self):
        assert parse_frontmatter("---\n- a\n- b\n---\nbody") == ({}, "body")

    def test_invalid_yaml_raises(self):
        with pytest.raises(yaml.YAMLError):
            parse_frontmatter("---\ndescription: [unclosed\n---\nbody")


class TestGetListing:
    def test_reads_metadata_and_sorts(self, tmp_path: Path):
        _write(
            tmp_path / "hints" / "testing.md",
            "---\ndescription: How to test\nrelevant_for: writing tests\n---\nbody",
        )
        _write(tmp_path / "hints" / "nested" / "Async.md", "no frontmatter")

        hints = get_listing([str(tmp_path / "hints" / "**" / "*.md")])

        assert hints == [
            HintInfo("Async", DEFAULT_DESCRIPTION, None, tmp_path / "hints" / "nested" / "Async.md"),
            HintInfo("testing", "How to test", "writing tests", tmp_path / "hints" / "testing.md"),
        ]

    def test_overlapping_patterns_read_once(self, tmp_path: Path):
        path = _write(tmp_path / "hints" / "a.md", "---\ndescription: A\n---\n")
        hints = get_listing([str(tmp_path / "hints" / "**" / "*.md"), str(path)])
        assert [h.name for h in hints] == ["a"]

    def test_unparseable_file_skipped(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        _write(tmp_path / "bad.md", "---\ndescription: [unclosed\n---\n")
        _write(tmp_path / "good.md", "---\ndescription: fine\n---\n")

        with caplog.at_level("WARNING"):
            hints = get_listing([str(tmp_path / "*.md")])

        assert [h.name for h in hints] == ["good"]
        assert "bad.md" in caplog.text

    def test_directories_ignored(self, tmp_path: Path):
        (tmp_path / "dir.md").mkdir()
        assert get_listing([str(tmp_path / "*.md")]) == []

    def test_no_matches(self, tmp_path: Path):
        assert get_listing([str(tmp_path / "nothing" / "**" / "*.md")]) == []


class TestHintPatterns:
    def test_default_root_only(self, tmp_path: Path):
        config = FlpipelineConfig(project_root=tmp_path)
        assert hint_patterns(config) == [str(tmp_path / "hints" / "**" / "*.md")]

    def test_extra_paths(self, tmp_path: Path):
        config = FlpipelineConfig(
            project_root=tmp_path,
            hints_root=tmp_path / "custom",
            hint_paths=("team-hints", "/abs/one.md"),
        )
        assert hint_patterns(config) == [
            str(tmp_path / "custom" / "**" / "*.md"),
            str(tmp_path / "team-hints" / "**" / "*.md"),
            "/abs/one.md",
        ]
