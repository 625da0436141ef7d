"""Tests for LLM-mediated hint selection."""

from __future__ import annotations

from pathlib import Path

import pytest

from flpipeline.exceptions import HintNotFoundError, ProviderError, SelectionParseError
from flpipeline.hints.listing import HintInfo
from flpipeline.hints.llm.protocols import LLMResponse, LLMService
from flpipeline.hints.selector import (
    FoundHints,
    TokenUsage,
    build_selection_prompt,
    get_relevant_hints,
    parse_selection,
)


class MockLLMService:
    """Records prompts and answers with a canned response."""

    def __init__(self, text: str = "[]", metadata: dict | None = None, error: Exception | None = None):
        self.text = text
        self.metadata = metadata or {}
        self.error = error
        self.prompts: list[str] = []
        self.kwargs: list[dict] = []

    def generate(self, prompt, *, model=None, temperature=None, max_tokens=None) -> LLMResponse:
        self.prompts.append(prompt)
        self.kwargs.append({"model": model, "temperature": temperature})
        if self.error is not None:
            raise self.error
        return LLMResponse(self.text, self.metadata)

    @property
    def provider_name(self) -> str:
        return "Mock"

    def is_available(self) -> bool:
        return True


@pytest.fixture
def hints_dir(tmp_path: Path) -> Path:
    root = tmp_path / "hints"
    root.mkdir()
    (root / "a.md").write_text(
        "---\ndescription: Hint A\nrelevant_for: database work\n---\nA body", encoding="utf-8"
    )
    (root / "b.md").write_text("---\ndescription: Hint B\n---\nB body", encoding="utf-8")
    (root / "c.md").write_text("C body", encoding="utf-8")
    return root


def _patterns(root: Path) -> list[str]:
    return [str(root / "**" / "*.md")]


class TestParseSelection:
    def test_hallucinated_names_dropped(self):
        assert parse_selection('["a", "c"]', ["a", "b"]) == ["a"]

    def test_capped_in_model_order(self):
        assert parse_selection('["c", "a", "b"]', ["a", "b", "c"], max_hints=2) == ["c", "a"]

    def test_not_json_raises(self):
        with pytest.raises(SelectionParseError):
            parse_selection("not json", ["a"])

    def test_broken_array_raises(self):
        with pytest.raises(SelectionParseError):
            parse_selection('["a", ', ["a"])

    def test_array_embedded_in_prose(self):
        text = 'Sure! Here you go:\n```json\n["b", "a"]\n```'
        assert parse_selection(text, ["a", "b"]) == ["b", "a"]

    def test_non_strings_and_duplicates_dropped(self):
        assert parse_selection('["a", 1, null, "a", "b"]', ["a", "b"]) == ["a", "b"]

    def test_empty_array(self):
        assert parse_selection("[]", ["a"]) == []


class TestBuildSelectionPrompt:
    def test_listing_lines(self):
        prompt = build_selection_prompt(
            "migrate the db",
            [HintInfo("a", "Hint A", "database work"), HintInfo("b", "Hint B")],
            max_hints=3,
        )
        assert "1. a - Hint A\n   Relevant for: database work\n2. b - Hint B\n" in prompt
        assert "Return 0-3 hints" in prompt
        assert "User's request: migrate the db" in prompt
        assert prompt.endswith('or [] if none are relevant.')


class TestGetRelevantHints:
    def test_selects_known_hints(self, hints_dir: Path):
        llm = MockLLMService('["b", "zzz", "a"]')

        found = get_relevant_hints(
            "migrate", patterns=_patterns(hints_dir), llm_service=llm, model="m1", temperature=0.1
        )

        assert found.names == ["b", "a"]
        assert llm.kwargs == [{"model": "m1", "temperature": 0.1}]
        assert "3. c - No description available" in llm.prompts[0]

    def test_no_candidates_skips_llm(self, tmp_path: Path):
        llm = MockLLMService('["a"]')
        found = get_relevant_hints("x", patterns=_patterns(tmp_path / "empty"), llm_service=llm)
        assert not found.has_hints()
        assert llm.prompts == []

    def test_parse_error_propagates(self, hints_dir: Path):
        with pytest.raises(SelectionParseError):
            get_relevant_hints(
                "x", patterns=_patterns(hints_dir), llm_service=MockLLMService("not json")
            )

    def test_provider_error_propagates(self, hints_dir: Path):
        llm = MockLLMService(error=ProviderError("Ollama generation failed: boom"))
        with pytest.raises(ProviderError, match="boom"):
            get_relevant_hints("x", patterns=_patterns(hints_dir), llm_service=llm)

    def test_token_usage(self, hints_dir: Path):
        llm = MockLLMService(
            '["a"]', {"model": "llama2", "input_tokens": 10, "output_tokens": 4, "tokens_used": 4}
        )
        found = get_relevant_hints("x", patterns=_patterns(hints_dir), llm_service=llm)
        assert found.token_usage == TokenUsage("llama2", 10, 4, 4)

    def test_content_comes_from_listed_file(self, hints_dir: Path):
        found = get_relevant_hints(
            "x", patterns=_patterns(hints_dir), llm_service=MockLLMService('["a", "c"]')
        )
        assert found.content("c") == "C body"
        assert found.concatenated().startswith("# a\n\n---\ndescription: Hint A")
        assert found.concatenated().endswith("\n\n---\n\n# c\n\nC body")

    def test_mock_satisfies_protocol(self):
        assert isinstance(MockLLMService(), LLMService)


class TestFoundHints:
    def test_hints_dir_fallback(self, hints_dir: Path):
        found = FoundHints(["b"], hints_dir=hints_dir)
        assert found.count == 1
        assert found.all_contents() == [("b", "---\ndescription: Hint B\n---\nB body")]

    def test_missing_file_raises(self, hints_dir: Path):
        found = FoundHints(["nope"], hints_dir=hints_dir)
        with pytest.raises(HintNotFoundError, match="nope"):
            found.content("nope")

    def test_no_location_raises(self):
        with pytest.raises(HintNotFoundError):
            FoundHints(["a"]).content("a")

    def test_empty(self):
        found = FoundHints()
        assert not found.has_hints()
        assert found.concatenated() == ""
        assert list(found) == []


class TestTokenUsage:
    def test_none_without_counts(self):
        assert TokenUsage.from_metadata({"model": "x"}) is None
