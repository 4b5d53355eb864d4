"""
SQLite document store for docguard.

Persists documents as JSON in a single SQLite file, so a fixture set can be
seeded once and evaluated against many times.

Tables:
    - schema_version: Applied schema version
    - documents: One row per (collection, doc_id), body stored as JSON

Snapshots:
    snapshot() opens a read transaction and holds the store lock until the
    evaluation ends. Other connections can't change what the transaction
    sees, and writers on this store wait for the snapshot to close.
"""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Generator, Mapping

from docguard.errors import StorageConnectionError, StorageReadError, StorageWriteError
from docguard.store.base import Document, DocumentStore, WritableDocumentStore, parse_path

# Schema version for migrations
SCHEMA_VERSION = 1

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    doc_id TEXT NOT NULL,
    data_json TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (collection, doc_id)
);
"""


def now_iso() -> str:
    """Get current UTC time in ISO format."""
    return datetime.now(UTC).isoformat()


class _TransactionView(DocumentStore):
    """Reads issued inside the snapshot's open read transaction."""

    def __init__(self, store: "SqliteDocumentStore") -> None:
        self._store = store

    def get(self, collection: str, document_id: str) -> Document | None:
        return self._store._select(collection, document_id)


class SqliteDocumentStore(WritableDocumentStore):
    """
    SQLite-backed document store.

    Usage:
        store = SqliteDocumentStore("documents.db")
        store.put("posts", "123", {"channels": ["123"]})
        store.close()

    Or use as context manager:
        with SqliteDocumentStore("documents.db") as store:
            ...
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize the database connection.

        Args:
            db_path: Path to the SQLite database file, or ":memory:".
                     Will be created if it doesn't exist.
        """
        self.db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._connect()
        self._init_schema()

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            self._conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
        except sqlite3.Error as e:
            raise StorageConnectionError(
                db_path=self.db_path,
                operation="connect",
                message=f"Failed to connect to database: {e}",
            ) from e

    def _init_schema(self) -> None:
        """Initialize database schema if needed."""
        try:
            cursor = self._conn.executescript(CREATE_TABLES_SQL)
            cursor.close()

            cursor = self._conn.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            )
            row = cursor.fetchone()
            if row is None:
                self._conn.execute(
                    "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                    (SCHEMA_VERSION, now_iso()),
                )
            self._conn.commit()
        except sqlite3.Error as e:
            self.close()
            raise StorageWriteError(
                operation="init_schema",
                underlying_error=str(e),
            ) from e

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "SqliteDocumentStore":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager."""
        self.close()

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, collection: str, document_id: str) -> Document | None:
        with self._lock:
            return self._select(collection, document_id)

    def _select(self, collection: str, document_id: str) -> Document | None:
        try:
            cursor = self._conn.execute(
                "SELECT data_json FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, document_id),
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="get",
                underlying_error=str(e),
            ) from e

        if row is None:
            return None
        return json.loads(row["data_json"])

    def count(self, collection: str | None = None) -> int:
        """Count stored documents, optionally within one collection."""
        with self._lock:
            try:
                if collection is None:
                    cursor = self._conn.execute("SELECT COUNT(*) FROM documents")
                else:
                    cursor = self._conn.execute(
                        "SELECT COUNT(*) FROM documents WHERE collection = ?",
                        (collection,),
                    )
                return cursor.fetchone()[0]
            except sqlite3.Error as e:
                raise StorageReadError(
                    operation="count",
                    underlying_error=str(e),
                ) from e

    @contextmanager
    def snapshot(self) -> Generator[DocumentStore, None, None]:
        with self._lock:
            try:
                self._conn.execute("BEGIN")
            except sqlite3.Error as e:
                raise StorageReadError(
                    operation="snapshot",
                    underlying_error=str(e),
                ) from e
            try:
                yield _TransactionView(self)
            finally:
                self._conn.rollback()

    # =========================================================================
    # Writes
    # =========================================================================

    def put(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            try:
                self._upsert(collection, document_id, data)
                self._conn.commit()
            except (sqlite3.Error, TypeError, ValueError) as e:
                self._conn.rollback()
                raise StorageWriteError(
                    operation="put",
                    underlying_error=str(e),
                ) from e

    def _upsert(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        self._conn.execute(
            """
            INSERT INTO documents (collection, doc_id, data_json, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (collection, doc_id)
            DO UPDATE SET data_json = excluded.data_json, updated_at = excluded.updated_at
            """,
            (collection, document_id, json.dumps(dict(data), sort_keys=True), now_iso()),
        )

    def load_documents(self, documents: Mapping[str, Mapping[str, Any]]) -> None:
        """Write a batch of documents in a single transaction."""
        parsed = [(parse_path(path), data) for path, data in documents.items()]
        with self._lock:
            try:
                for (collection, document_id), data in parsed:
                    self._upsert(collection, document_id, data)
                self._conn.commit()
            except (sqlite3.Error, TypeError, ValueError) as e:
                self._conn.rollback()
                raise StorageWriteError(
                    operation="load_documents",
                    underlying_error=str(e),
                ) from e

    def delete(self, collection: str, document_id: str) -> None:
        with self._lock:
            try:
                self._conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection, document_id),
                )
                self._conn.commit()
            except sqlite3.Error as e:
                raise StorageWriteError(
                    operation="delete",
                    underlying_error=str(e),
                ) from e

    def clear(self) -> None:
        with self._lock:
            try:
                self._conn.execute("DELETE FROM documents")
                self._conn.commit()
            except sqlite3.Error as e:
                raise StorageWriteError(
                    operation="clear",
                    underlying_error=str(e),
                ) from e
