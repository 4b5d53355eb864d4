"""
Exception hierarchy for docguard.

All docguard exceptions inherit from DocGuardError, allowing callers to catch
every docguard-specific exception with a single except clause.

Exception Categories:
    - MalformedDocumentError: A stored document has a missing or wrong-typed field
    - InvalidPathError: A document path is not of the form collection/id
    - ConfigError: Engine configuration could not be loaded
    - StorageError: A document store operation failed

Policy denials are not exceptions. They are ordinary Decision values.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Document errors: 1xxx
ERROR_DOCUMENT_MALFORMED = 1001
ERROR_DOCUMENT_INVALID_PATH = 1002

# Config errors: 2xxx
ERROR_CONFIG_INVALID = 2001

# Storage errors: 3xxx
ERROR_STORAGE_CONNECTION = 3001
ERROR_STORAGE_WRITE = 3002
ERROR_STORAGE_READ = 3003


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class DocGuardError(Exception):
    """
    Base exception for all docguard errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Document Errors
# =============================================================================


@dataclass
class MalformedDocumentError(DocGuardError):
    """
    Raised when a document exists but does not have the expected shape.

    The resolver raises this while following a reference. The engine turns
    it into a malformed Decision, never into a denial.

    Attributes:
        collection: Collection of the offending document
        document_id: ID of the offending document
        detail: What was wrong with it
    """

    collection: str = ""
    document_id: str = ""
    detail: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"Malformed document {self.collection}/{self.document_id}: {self.detail}"
            )
        if self.code == 0:
            self.code = ERROR_DOCUMENT_MALFORMED
        if not self.suggestion:
            self.suggestion = "Fix the stored document so its fields have the expected types"
        self.context.update({
            "collection": self.collection,
            "document_id": self.document_id,
            "detail": self.detail,
        })


@dataclass
class InvalidPathError(DocGuardError):
    """Raised when a document path is not collection/id."""

    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid document path: {self.path!r}"
        if self.code == 0:
            self.code = ERROR_DOCUMENT_INVALID_PATH
        if not self.suggestion:
            self.suggestion = "Use a path of the form <collection>/<id>, e.g. posts/123"
        self.context["path"] = self.path


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigError(DocGuardError):
    """Raised when engine configuration is invalid or unreadable."""

    source: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration {self.source}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context.update({
            "source": self.source,
            "underlying_error": self.underlying_error,
        })


# =============================================================================
# Storage Errors
# =============================================================================


@dataclass
class StorageError(DocGuardError):
    """
    Base class for document store errors.

    Attributes:
        operation: The operation that failed (e.g., "get", "put")
    """

    operation: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["operation"] = self.operation


@dataclass
class StorageConnectionError(StorageError):
    """Raised when the database connection fails."""

    db_path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to connect to database: {self.db_path}"
        if self.code == 0:
            self.code = ERROR_STORAGE_CONNECTION
        if not self.suggestion:
            self.suggestion = "Check that the database path is valid and writable"
        super().__post_init__()
        self.context["db_path"] = self.db_path


@dataclass
class StorageWriteError(StorageError):
    """Raised when a write operation fails."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database write failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_WRITE
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class StorageReadError(StorageError):
    """Raised when a read operation fails."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database read failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_READ
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error
