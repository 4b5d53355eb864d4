"""
In-memory document store.

Used by tests and by hosts that already hold their documents in memory.
Reads hand out copies, so nothing the engine does can change stored data.
"""

import copy
import threading
from contextlib import contextmanager
from typing import Any, Generator, Mapping

from docguard.store.base import Document, DocumentStore, WritableDocumentStore


class _FrozenView(DocumentStore):
    """Point-in-time copy of an in-memory store's contents."""

    def __init__(self, documents: dict[tuple[str, str], Document]) -> None:
        self._documents = documents

    def get(self, collection: str, document_id: str) -> Document | None:
        doc = self._documents.get((collection, document_id))
        return copy.deepcopy(doc) if doc is not None else None


class InMemoryDocumentStore(WritableDocumentStore):
    """
    Thread-safe dict-backed document store.

    Usage:
        store = InMemoryDocumentStore()
        store.load_documents({"posts/123": {"channels": ["123"]}})
        with store.snapshot() as view:
            view.get("posts", "123")
    """

    def __init__(self, documents: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._documents: dict[tuple[str, str], Document] = {}
        self._lock = threading.Lock()
        if documents:
            self.load_documents(documents)

    def get(self, collection: str, document_id: str) -> Document | None:
        with self._lock:
            doc = self._documents.get((collection, document_id))
            return copy.deepcopy(doc) if doc is not None else None

    def put(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            self._documents[(collection, document_id)] = copy.deepcopy(dict(data))

    def delete(self, collection: str, document_id: str) -> None:
        with self._lock:
            self._documents.pop((collection, document_id), None)

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    @contextmanager
    def snapshot(self) -> Generator[DocumentStore, None, None]:
        # Stored values are replaced, never mutated, so they can be shared.
        with self._lock:
            documents = dict(self._documents)
        yield _FrozenView(documents)
