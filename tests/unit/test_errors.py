"""
Unit tests for error hierarchy.

Tests cover:
- Base DocGuardError behavior
- Document, config and storage errors with context
- Error serialization
"""

import pytest

from docguard.errors import (
    ERROR_CONFIG_INVALID,
    ERROR_DOCUMENT_INVALID_PATH,
    ERROR_DOCUMENT_MALFORMED,
    ERROR_STORAGE_CONNECTION,
    ERROR_STORAGE_READ,
    ERROR_STORAGE_WRITE,
    ConfigError,
    DocGuardError,
    InvalidPathError,
    MalformedDocumentError,
    StorageConnectionError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)


class TestDocGuardError:
    """Tests for base DocGuardError."""

    def test_basic_error(self) -> None:
        """Create a basic error with message."""
        err = DocGuardError(message="Something went wrong", code=9999)
        assert err.message == "Something went wrong"
        assert err.code == 9999
        assert err.suggestion is None
        assert err.context == {}

    def test_str_format(self) -> None:
        """String format includes code and message."""
        err = DocGuardError(message="Test error", code=1234)
        assert str(err) == "[E1234] Test error"

    def test_str_with_suggestion(self) -> None:
        """Suggestion is appended to the display string."""
        err = DocGuardError(message="Failed", code=1, suggestion="Try again")
        assert "Suggestion: Try again" in str(err)

    def test_repr_format(self) -> None:
        """Repr includes class name and details."""
        err = DocGuardError(message="Test", code=1)
        assert "DocGuardError" in repr(err)
        assert "message='Test'" in repr(err)

    def test_to_dict(self) -> None:
        """Convert error to dictionary."""
        err = DocGuardError(
            message="Test",
            code=1,
            suggestion="Try again",
            context={"foo": "bar"},
        )
        d = err.to_dict()
        assert d["error_type"] == "DocGuardError"
        assert d["message"] == "Test"
        assert d["code"] == 1
        assert d["suggestion"] == "Try again"
        assert d["context"]["foo"] == "bar"

    def test_is_exception(self) -> None:
        """DocGuardError is a proper exception."""
        with pytest.raises(DocGuardError):
            raise DocGuardError(message="Test", code=1)


class TestDocumentErrors:
    """Tests for document errors."""

    def test_malformed_document(self) -> None:
        """Malformed document error carries location and detail."""
        err = MalformedDocumentError(
            collection="users",
            document_id="u1",
            detail="channels: Input should be a valid set",
        )
        assert err.code == ERROR_DOCUMENT_MALFORMED
        assert "users/u1" in str(err)
        assert err.context["collection"] == "users"
        assert err.context["document_id"] == "u1"
        assert err.suggestion is not None

    def test_invalid_path(self) -> None:
        """Invalid path error names the path."""
        err = InvalidPathError(path="posts")
        assert err.code == ERROR_DOCUMENT_INVALID_PATH
        assert "'posts'" in err.message
        assert err.context["path"] == "posts"

    def test_custom_message_kept(self) -> None:
        """An explicit message is not overwritten."""
        err = MalformedDocumentError(message="custom", collection="posts")
        assert err.message == "custom"


class TestConfigError:
    """Tests for config errors."""

    def test_config_error(self) -> None:
        err = ConfigError(source="config.yaml", underlying_error="bad key")
        assert err.code == ERROR_CONFIG_INVALID
        assert "config.yaml" in err.message
        assert err.context["underlying_error"] == "bad key"


class TestStorageErrors:
    """Tests for storage errors."""

    def test_connection_error(self) -> None:
        err = StorageConnectionError(db_path="/nope/db.sqlite", operation="connect")
        assert err.code == ERROR_STORAGE_CONNECTION
        assert err.context["db_path"] == "/nope/db.sqlite"
        assert err.context["operation"] == "connect"
        assert isinstance(err, StorageError)

    def test_read_error(self) -> None:
        err = StorageReadError(operation="get", underlying_error="disk I/O error")
        assert err.code == ERROR_STORAGE_READ
        assert "disk I/O error" in err.message

    def test_write_error(self) -> None:
        err = StorageWriteError(operation="put", underlying_error="locked")
        assert err.code == ERROR_STORAGE_WRITE
        assert err.to_dict()["error_type"] == "StorageWriteError"
