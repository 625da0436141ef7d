"""Hint file discovery and frontmatter parsing."""

from __future__ import annotations

import glob
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from collections.abc import Sequence

    from flpipeline.config import FlpipelineConfig

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description available"

_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*$\r?\n?", re.DOTALL | re.MULTILINE)


@dataclass(frozen=True, slots=True)
class HintInfo:
    """One hint file as shown to the selection model.

    Attributes:
        name: File name without ``.md``; the identifier the model answers with.
        description: Frontmatter ``description``.
        relevant_for: Frontmatter ``relevant_for`` (when to use the hint).
        path: Where the hint was found.
    """

    name: str
    description: str = DEFAULT_DESCRIPTION
    relevant_for: str | None = None
    path: Path | None = None


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split a leading ``---`` fenced YAML block from *content*.

    Returns ``(metadata, body)``.  Without a fenced block the metadata is
    empty and the body is the whole text.  An empty or non-mapping block
    also yields empty metadata.

    Raises:
        yaml.YAMLError: The fenced block is not valid YAML.
    """
    match = _FRONTMATTER.match(content)
    if match is None:
        return {}, content
    data = yaml.safe_load(match.group(1))
    body = content[match.end() :]
    if not isinstance(data, dict):
        return {}, body
    return data, body


def _hint_from_file(path: Path) -> HintInfo:
    data, _body = parse_frontmatter(path.read_text(encoding="utf-8"))
    description = data.get("description") or DEFAULT_DESCRIPTION
    relevant_for = data.get("relevant_for") or None
    return HintInfo(
        name=path.name[: -len(".md")] if path.name.endswith(".md") else path.stem,
        description=str(description),
        relevant_for=str(relevant_for) if relevant_for is not None else None,
        path=path,
    )


def get_listing(patterns: Sequence[str]) -> list[HintInfo]:
    """Read every file matched by *patterns* and return its hint metadata, sorted by name.

    Files matched by more than one pattern are read once.  Files that cannot
    be read or parsed are logged and skipped.
    """
    hints: list[HintInfo] = []
    seen: set[str] = set()

    for pattern in patterns:
        for match in sorted(glob.glob(pattern, recursive=True)):
            path = Path(match)
            if not path.is_file():
                continue
            key = os.path.realpath(path)
            if key in seen:
                continue
            seen.add(key)

            try:
                hints.append(_hint_from_file(path))
            except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
                logger.warning("Could not process hint file %s: %s", path, exc)

    hints.sort(key=lambda h: (h.name.casefold(), h.name))
    return hints


def hint_patterns(config: FlpipelineConfig) -> list[str]:
    """Glob patterns for the default hints root plus configured hint paths.

    A configured path ending in ``.md`` is used as-is; anything else is
    treated as a directory searched recursively.
    """
    patterns = [os.path.join(config.default_hints_root, "**", "*.md")]
    for hint_path in config.hint_paths:
        expanded = os.path.expanduser(hint_path)
        if not os.path.isabs(expanded):
            expanded = os.path.join(config.project_root, expanded)
        if expanded.endswith(".md"):
            patterns.append(expanded)
        else:
            patterns.append(os.path.join(expanded, "**", "*.md"))
    return patterns
