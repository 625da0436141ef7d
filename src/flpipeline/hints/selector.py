"""LLM-mediated hint selection.

The model sees a numbered listing of candidate hints and answers with a JSON
array of names.  The answer is trusted only as far as it names real
candidates: unknown names are dropped and the result is capped.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from flpipeline.exceptions import HintNotFoundError, SelectionParseError
from flpipeline.hints.listing import HintInfo, get_listing

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from flpipeline.hints.llm.protocols import LLMService

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "\n\n---\n\n"
DEFAULT_MAX_HINTS = 5
DEFAULT_TEMPERATURE = 0.3

_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)

_PROMPT_TEMPLATE = """\
You are a helpful assistant that selects the most relevant hint files for a user's request.

Available hint files:
{listing}

Your task:
- Analyze the user's request and return ONLY the hints that are truly relevant
- Pay close attention to the "Relevant for" field - this specifies when each hint should be used
- Return 0-{max_hints} hints (fewer is better if others aren't relevant)
- Match the user's task to the hint's "Relevant for" criteria

User's request: {request}

Respond with ONLY a JSON array of hint file names (without the .md extension).
Examples: ["hint-name-1", "hint-name-2"] or [] if none are relevant."""


# ------------------------------------------------------------------
# Result types
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token accounting reported by the selection call."""

    model: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    tokens_used: int | None = None

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> TokenUsage | None:
        """Build from :attr:`LLMResponse.metadata`; ``None`` if no counts were reported."""
        usage = cls(
            model=metadata.get("model"),
            input_tokens=metadata.get("input_tokens"),
            output_tokens=metadata.get("output_tokens"),
            tokens_used=metadata.get("tokens_used"),
        )
        if usage.input_tokens is None and usage.output_tokens is None and usage.tokens_used is None:
            return None
        return usage


class FoundHints:
    """Ordered hint names with lazy access to their file contents.

    Each name resolves to the file it was listed from; names without a
    recorded file fall back to ``<hints_dir>/<name>.md``.
    """

    def __init__(
        self,
        names: Sequence[str] = (),
        *,
        paths: Mapping[str, Path] | None = None,
        hints_dir: str | Path | None = None,
        token_usage: TokenUsage | None = None,
    ) -> None:
        self._names = list(names)
        self._paths = dict(paths or {})
        self._hints_dir = Path(hints_dir) if hints_dir is not None else None
        self.token_usage = token_usage

    @property
    def names(self) -> list[str]:
        return list(self._names)

    @property
    def count(self) -> int:
        return len(self._names)

    def has_hints(self) -> bool:
        return bool(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def content(self, name: str) -> str:
        """Full text of hint *name*.

        Raises:
            HintNotFoundError: The file cannot be located or read.
        """
        path = self._paths.get(name)
        if path is None and self._hints_dir is not None:
            path = self._hints_dir / f"{name}.md"
        if path is None:
            msg = f"Failed to read hint file {name}: no known location"
            raise HintNotFoundError(msg)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Failed to read hint file {name}: {exc}"
            raise HintNotFoundError(msg) from exc

    def all_contents(self) -> list[tuple[str, str]]:
        """``(name, content)`` for every hint, in selection order."""
        return [(name, self.content(name)) for name in self._names]

    def concatenated(self, separator: str = DEFAULT_SEPARATOR) -> str:
        """All hints as ``# <name>`` blocks joined by *separator*."""
        return separator.join(f"# {name}\n\n{content}" for name, content in self.all_contents())


# ------------------------------------------------------------------
# Prompt contract
# ------------------------------------------------------------------


def format_listing(hints: Sequence[HintInfo]) -> str:
    """Numbered ``"<i>. <name> - <description>"`` lines for the prompt."""
    lines = []
    for i, hint in enumerate(hints, start=1):
        line = f"{i}. {hint.name} - {hint.description}"
        if hint.relevant_for:
            line += f"\n   Relevant for: {hint.relevant_for}"
        lines.append(line)
    return "\n".join(lines)


def build_selection_prompt(
    input_text: str,
    hints: Sequence[HintInfo],
    max_hints: int = DEFAULT_MAX_HINTS,
) -> str:
    return _PROMPT_TEMPLATE.format(
        listing=format_listing(hints),
        max_hints=max_hints,
        request=input_text,
    )


def parse_selection(
    response_text: str,
    available: Sequence[str],
    max_hints: int = DEFAULT_MAX_HINTS,
) -> list[str]:
    """Extract selected hint names from a model response.

    The first ``[`` through the last ``]`` is decoded as JSON.  Entries that
    are not strings, not in *available*, or repeated are dropped; the model's
    order is kept and the result is cut to *max_hints*.

    Raises:
        SelectionParseError: No JSON array could be decoded.
    """
    match = _JSON_ARRAY.search(response_text)
    if match is None:
        msg = f"Failed to parse hint selection from LLM: no JSON array found in {response_text!r}"
        raise SelectionParseError(msg)
    try:
        selected = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse hint selection from LLM: {exc}"
        raise SelectionParseError(msg) from exc
    if not isinstance(selected, list):
        msg = "Failed to parse hint selection from LLM: response is not a JSON array"
        raise SelectionParseError(msg)

    known = set(available)
    names: list[str] = []
    for item in selected:
        if not isinstance(item, str) or item not in known or item in names:
            continue
        names.append(item)
    dropped = [item for item in selected if isinstance(item, str) and item not in known]
    if dropped:
        logger.debug("Ignoring unknown hints from model: %s", dropped)
    return names[: max(max_hints, 0)]


def get_relevant_hints(
    input_text: str,
    *,
    patterns: Sequence[str],
    llm_service: LLMService,
    model: str | None = None,
    temperature: float = DEFAULT_TEMPERATURE,
    max_hints: int = DEFAULT_MAX_HINTS,
    hints_dir: str | Path | None = None,
) -> FoundHints:
    """Ask *llm_service* which of the hints matched by *patterns* fit *input_text*.

    No candidates means no model call and an empty result.

    Raises:
        ProviderError: The generation call failed.
        SelectionParseError: The model did not answer with a JSON array.
    """
    hints = get_listing(patterns)
    if not hints:
        return FoundHints(hints_dir=hints_dir)

    prompt = build_selection_prompt(input_text, hints, max_hints)
    response = llm_service.generate(prompt, model=model, temperature=temperature)

    paths: dict[str, Path] = {}
    for hint in hints:
        if hint.path is not None:
            paths.setdefault(hint.name, hint.path)

    names = parse_selection(response.text, [h.name for h in hints], max_hints)
    logger.info("Selected %d of %d hints", len(names), len(hints))
    return FoundHints(
        names,
        paths=paths,
        hints_dir=hints_dir,
        token_usage=TokenUsage.from_metadata(response.metadata),
    )
