"""
Document store interface for docguard.

The engine reads documents through a DocumentStore it is handed by the
host. It never writes. Every evaluation opens one snapshot and does all of
its reads through it, so a write landing mid-evaluation is never observed.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Mapping

import yaml

from docguard.errors import ConfigError, InvalidPathError

Document = dict[str, Any]


def parse_path(path: str) -> tuple[str, str]:
    """
    Split a document path into (collection, document_id).

    Examples:
        "posts/123" -> ("posts", "123")
        "/users/abc" -> ("users", "abc")

    Raises:
        InvalidPathError: If the path isn't exactly two non-empty segments
    """
    parts = path.strip("/").split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidPathError(path=path)
    return parts[0], parts[1]


def load_fixtures(path: Path | str) -> dict[str, Document]:
    """
    Load a fixture file mapping document paths to document bodies.

    The file is YAML (JSON is accepted too, being a YAML subset):

        users/myUserId:
          firstName: John
          channels: ["123"]
        posts/123:
          channels: ["123"]

    Raises:
        ConfigError: If the file is unreadable or not a mapping of mappings
        InvalidPathError: If a key isn't a collection/id path
    """
    path = Path(path)
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(source=str(path), underlying_error=str(e)) from e

    if not isinstance(data, dict):
        raise ConfigError(
            source=str(path),
            underlying_error="fixture file must map document paths to documents",
        )

    fixtures: dict[str, Document] = {}
    for doc_path, body in data.items():
        parse_path(str(doc_path))
        if not isinstance(body, dict):
            raise ConfigError(
                source=str(path),
                underlying_error=f"document {doc_path} must be a mapping",
            )
        fixtures[str(doc_path)] = body
    return fixtures


class DocumentStore(ABC):
    """
    Read-only access to documents by collection and id.

    Subclasses implement get(). Stores whose contents can change should
    also override snapshot() to hand out a consistent view.
    """

    @abstractmethod
    def get(self, collection: str, document_id: str) -> Document | None:
        """
        Fetch one document.

        Returns:
            The document body, or None if it doesn't exist. Absence is a
            normal outcome and never raises.
        """
        ...

    @contextmanager
    def snapshot(self) -> Generator["DocumentStore", None, None]:
        """
        Open a consistent read view for the duration of one evaluation.

        The default yields the store itself, which is correct for stores
        that don't change.
        """
        yield self


class WritableDocumentStore(DocumentStore):
    """A store the host can seed with documents."""

    @abstractmethod
    def put(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        """Create or replace a document."""
        ...

    @abstractmethod
    def delete(self, collection: str, document_id: str) -> None:
        """Remove a document if it exists."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every document."""
        ...

    def load_documents(self, documents: Mapping[str, Mapping[str, Any]]) -> None:
        """
        Write a batch of documents keyed by collection/id path.

        All paths are validated before anything is written.
        """
        parsed = [(parse_path(path), data) for path, data in documents.items()]
        for (collection, document_id), data in parsed:
            self.put(collection, document_id, data)
