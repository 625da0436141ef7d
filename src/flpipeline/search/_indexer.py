"""DocumentIndexer — keeps the document store in sync with a tree of markdown files."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from flpipeline.exceptions import StorageError
from flpipeline.search.text import (
    chunk_text,
    filename_tokens,
    preprocess_text,
    title_from_filename,
)
from flpipeline.search.types import IndexReport

if TYPE_CHECKING:
    from flpipeline.search.protocols import EmbeddingProvider
    from flpipeline.search.stores.sqlite import SQLiteVectorStore

logger = logging.getLogger(__name__)

# Headings too generic to identify a document on their own.
GENERIC_HEADINGS = frozenset({"logging", "overview", "introduction", "summary"})

TITLE_SCAN_LINES = 10
HEAD_EXCERPT_CHARS = 2000


def content_hash(raw: bytes) -> str:
    """SHA-256 hex digest of raw file bytes."""
    return hashlib.sha256(raw).hexdigest()


def extract_title(content: str, filename: str) -> str:
    """Pick a display title for a document.

    The first ``# `` heading within the first ten lines wins unless it is a
    single word or a generic heading, in which case the title-cased filename
    is used.  Without such a heading the filename is always used.
    """
    file_title = title_from_filename(filename)
    for line in content.split("\n")[:TITLE_SCAN_LINES]:
        trimmed = line.strip()
        if trimmed.startswith("# "):
            heading = trimmed[2:].strip()
            if len(heading.split(" ")) == 1 or heading.lower() in GENERIC_HEADINGS:
                return file_title
            return heading
    return file_title


def build_embedding_input(filename: str, title: str, content: str) -> str:
    """Compose the text embedded for a document.

    Filename tokens lead so that queries naming the file land close to it.
    Documents that fit in one chunk are embedded whole; longer ones are
    represented by a head excerpt.
    """
    tokens = filename_tokens(filename)
    chunks = chunk_text(content)
    if len(chunks) <= 1:
        body = chunks[0] if chunks else content
    else:
        body = content[:HEAD_EXCERPT_CHARS]
    return f"{tokens}\n{title}\n\n{body}"


class DocumentIndexer:
    """Walks a docs directory and writes changed files through to the store.

    Files are processed one at a time; a file whose fingerprint matches the
    stored one is skipped without touching the store or the provider.
    """

    def __init__(self, store: SQLiteVectorStore, embedding_provider: EmbeddingProvider) -> None:
        self._store = store
        self._embedding_provider = embedding_provider

    def index_documents(self, root: str | Path) -> IndexReport:
        """Index every ``*.md`` file under *root* in sorted order."""
        root_path = Path(root)
        report = IndexReport()
        for path in sorted(p for p in root_path.rglob("*.md") if p.is_file()):
            relative = path.relative_to(root_path).as_posix()
            if self.index_document(path, relative):
                report.indexed.append(relative)
            else:
                report.skipped.append(relative)
        return report

    def index_document(self, path: str | Path, relative_path: str) -> bool:
        """Index one file. Returns ``True`` if it was (re-)embedded.

        Bytes that are not valid UTF-8 are replaced, not rejected; the
        fingerprint is taken over the raw bytes.
        """
        try:
            raw = Path(path).read_bytes()
        except OSError as exc:
            msg = f"Failed to read document {relative_path!r}: {exc}"
            raise StorageError(msg) from exc
        fingerprint = content_hash(raw)

        existing = self._store.get_document_by_filename(relative_path)
        if (
            existing is not None
            and existing.id is not None
            and existing.content_hash == fingerprint
            and self._store.embedding_rowid(existing.id) is not None
        ):
            return False

        logger.info("Updating embedding for %s", relative_path)
        content = raw.decode("utf-8", errors="replace")
        title = extract_title(content, relative_path)
        processed = preprocess_text(content)
        document_id = self._store.upsert_document(
            filename=relative_path,
            content=processed,
            title=title,
            content_hash=fingerprint,
        )

        vector = self._embedding_provider.embed(
            build_embedding_input(relative_path, title, processed)
        )
        self._store.upsert_embedding(document_id, vector)
        return True
