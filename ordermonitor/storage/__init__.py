"""Document store backends."""

from __future__ import annotations

from .base import DocumentStore, Filter, StorageError
from .memory import InMemoryDocumentStore
from .sqlite import SQLiteDocumentStore


def create_store(backend: str = "memory", path: str | None = None) -> DocumentStore:
    """Build the configured store backend."""

    if backend == "sqlite":
        return SQLiteDocumentStore(path or ":memory:")
    if backend == "memory":
        return InMemoryDocumentStore()
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    "DocumentStore",
    "Filter",
    "StorageError",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    "create_store",
]
