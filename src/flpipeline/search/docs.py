"""Resolving a documentation file from a partial name."""

from __future__ import annotations

import posixpath
from pathlib import Path

from flpipeline.exceptions import DocNotFoundError


def list_doc_files(docs_root: Path) -> list[str]:
    """Relative posix paths of every file under *docs_root*, sorted."""
    return sorted(p.relative_to(docs_root).as_posix() for p in docs_root.rglob("*") if p.is_file())


def resolve_doc(docs_root: str | Path, query: str) -> Path:
    """Pick the file under *docs_root* whose relative path contains *query*.

    Matching is case-insensitive.  An exact match on the relative path (with
    or without its extension) wins over partial matches; otherwise the
    partial match must be unique.

    Raises:
        DocNotFoundError: Empty query, unreadable root, no match, or more
            than one partial match.
    """
    needle = query.strip().lower()
    if not needle:
        msg = "Expected a document name"
        raise DocNotFoundError(msg)

    root = Path(docs_root)
    if not root.is_dir():
        msg = f"Unable to read docs directory at {root}"
        raise DocNotFoundError(msg)
    try:
        files = list_doc_files(root)
    except OSError as exc:
        msg = f"Unable to read docs directory at {root}: {exc}"
        raise DocNotFoundError(msg) from exc

    matches = [f for f in files if needle in f.lower()]
    if not matches:
        msg = f'No document found matching "{query.strip()}"'
        raise DocNotFoundError(msg)

    for candidate in matches:
        lower = candidate.lower()
        if needle in (lower, posixpath.splitext(lower)[0]):
            return root / candidate
    if len(matches) == 1:
        return root / matches[0]

    msg = f'Multiple documents match "{query.strip()}": {", ".join(matches)}'
    raise DocNotFoundError(msg)
