"""Text preparation shared by the indexer, the searcher and the providers."""

from __future__ import annotations

import posixpath
import re

_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_WHITESPACE = re.compile(r"\s+")
_SENTENCE_BREAK = re.compile(r"[.!?]+")
_WORD_START = re.compile(r"\b\w")
_SEPARATORS = re.compile(r"[-_]")


def preprocess_text(text: str) -> str:
    """Normalize whitespace before storage or embedding.

    Runs of three or more newlines become a paragraph break, then every
    whitespace run (paragraph breaks included) becomes a single space.
    """
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return _WHITESPACE.sub(" ", text).strip()


def chunk_text(text: str, max_chunk_size: int = 1000) -> list[str]:
    """Greedily pack sentences into chunks of at most *max_chunk_size* characters.

    Sentences are split on ``.``, ``!`` and ``?``; every emitted chunk is
    re-terminated with a period.  A single sentence longer than the limit
    becomes its own (oversized) chunk.
    """
    sentences = [s for s in _SENTENCE_BREAK.split(text) if s.strip()]
    chunks: list[str] = []
    current = ""
    for sentence in sentences:
        trimmed = sentence.strip()
        if len(current) + len(trimmed) + 1 <= max_chunk_size:
            current = f"{current}. {trimmed}" if current else trimmed
        else:
            if current:
                chunks.append(current + ".")
            current = trimmed
    if current:
        chunks.append(current + ".")
    return [c for c in chunks if c.strip()]


def filename_tokens(filename: str, extension: str = ".md") -> str:
    """Return the basename of *filename* without *extension*, separators as spaces.

    ``"guides/error-handling_v2.md"`` → ``"error handling v2"``.
    """
    base = posixpath.basename(filename.replace("\\", "/"))
    if extension and base.endswith(extension):
        base = base[: -len(extension)]
    return _SEPARATORS.sub(" ", base)


def normalized_filename(filename: str) -> str:
    """Lowercased basename with any extension stripped and separators as spaces."""
    base = posixpath.basename(filename.replace("\\", "/"))
    stem, _ext = posixpath.splitext(base)
    return _SEPARATORS.sub(" ", stem).lower()


def title_from_filename(filename: str) -> str:
    """Title-case the filename tokens: ``"error-handling.md"`` → ``"Error Handling"``."""
    return _WORD_START.sub(lambda m: m.group(0).upper(), filename_tokens(filename))
