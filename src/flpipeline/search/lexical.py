"""Keyword scoring used by the lexical fallback tiers."""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

FILENAME_POINTS = 3
TITLE_POINTS = 2
CONTENT_POINTS = 1

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_HEADING_PREFIX = re.compile(r"^#\s+")


def parse_query(query: str) -> list[str]:
    """Split *query* into unique lowercase alphanumeric terms longer than two characters.

    Order of first appearance is preserved.
    """
    words = [w for w in _NON_ALNUM.split(query.lower()) if len(w) > 2]
    return list(dict.fromkeys(words))


def score_document(filename: str, title: str, content: str, words: list[str]) -> int:
    """Sum keyword points: 3 per term in the filename, 2 in the title, 1 in the content."""
    fn = filename.lower()
    title_lower = title.lower()
    content_lower = content.lower()

    score = 0
    for word in words:
        if word in fn:
            score += FILENAME_POINTS
        if word in title_lower:
            score += TITLE_POINTS
        if word in content_lower:
            score += CONTENT_POINTS
    return score


def first_heading(content: str) -> str:
    """Return the text of the first ``# `` line anywhere in *content*, or ``""``."""
    for line in content.split("\n"):
        if line.strip().startswith("# "):
            return _HEADING_PREFIX.sub("", line.strip())
    return ""


def walk_markdown(root: Path) -> list[Path]:
    """Every ``.md`` file (case-insensitive suffix) under *root*, sorted.

    Unreadable directories are skipped; a missing root yields nothing.
    """
    if not root.is_dir():
        return []
    found: list[Path] = []
    try:
        for path in root.rglob("*"):
            if path.suffix.lower() == ".md" and path.is_file():
                found.append(path)
    except OSError as exc:
        logger.debug("Stopped walking %s: %s", root, exc)
    return sorted(found)


def rank(scored: list[tuple[str, int]], limit: int) -> list[tuple[str, int]]:
    """Keep positive scores, best first (stable on ties), at most *limit*."""
    positive = [item for item in scored if item[1] > 0]
    positive.sort(key=lambda item: item[1], reverse=True)
    return positive[:limit]
