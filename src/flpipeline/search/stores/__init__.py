"""Vector stores."""

from flpipeline.search.stores.sqlite import SQLiteVectorStore

__all__ = [
    "SQLiteVectorStore",
]
