"""
Storage module for docguard.

The engine only ever reads through the DocumentStore interface. Two
concrete stores are provided for hosts and tests:

    - InMemoryDocumentStore: dict-backed, snapshots by copying
    - SqliteDocumentStore: single-file persistence, snapshots by read transaction

Fixture files map collection/id paths to document bodies and can be loaded
into either store with load_documents().
"""

from docguard.store.base import (
    Document,
    DocumentStore,
    WritableDocumentStore,
    load_fixtures,
    parse_path,
)
from docguard.store.db import SqliteDocumentStore
from docguard.store.memory import InMemoryDocumentStore

__all__ = [
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqliteDocumentStore",
    "WritableDocumentStore",
    "load_fixtures",
    "parse_path",
]
