"""
Unit tests for logging configuration.

Tests cover:
- Logger level and handler setup
- JSON formatting with extra fields
- Structured fields on engine and resolver log lines
"""

import io
import json
import logging

from rich.logging import RichHandler

from docguard.logging_config import JsonFormatter, configure_logging
from docguard.policy import PolicyEngine
from docguard.schema import Operation, Principal
from docguard.store import InMemoryDocumentStore


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="docguard.policy.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _json_lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_rich_handler_by_default(self) -> None:
        logger = configure_logging("DEBUG")
        assert logger.name == "docguard"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.propagate is False

    def test_json_handler(self) -> None:
        logger = configure_logging("info", json_output=True)
        assert logger.level == logging.INFO
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    def test_unknown_level_falls_back(self) -> None:
        assert configure_logging("chatty").level == logging.WARNING

    def test_repeated_calls_replace_handlers(self) -> None:
        configure_logging()
        logger = configure_logging()
        assert len(logger.handlers) == 1


class TestJsonFormatter:
    """Tests for JSON log lines."""

    def test_standard_fields(self) -> None:
        payload = json.loads(JsonFormatter().format(_record("hello")))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "docguard.policy.engine"
        assert payload["message"] == "hello"
        assert "timestamp" in payload

    def test_extra_fields(self) -> None:
        payload = json.loads(JsonFormatter().format(_record("hi", collection="posts")))
        assert payload["collection"] == "posts"

    def test_record_internals_left_out(self) -> None:
        payload = json.loads(JsonFormatter().format(_record("hi")))
        assert "lineno" not in payload
        assert "args" not in payload


class TestStructuredEngineLogs:
    """Engine and resolver log lines carry their fields as JSON keys."""

    def _capture(self) -> io.StringIO:
        stream = io.StringIO()
        logger = configure_logging("DEBUG", json_output=True)
        logger.handlers[0].setStream(stream)
        return stream

    def test_decision_fields(self) -> None:
        stream = self._capture()
        store = InMemoryDocumentStore({"posts/123": {"channels": ["123"]}})

        PolicyEngine(store).evaluate(
            Principal.authenticated("myUserId"), Operation.READ, "posts", "123"
        )

        decision_line = _json_lines(stream)[-1]
        assert decision_line["outcome"] == "deny"
        assert decision_line["rule"] == "has_profile"
        assert decision_line["collection"] == "posts"
        assert decision_line["document_id"] == "123"
        assert decision_line["uid"] == "myUserId"
        assert decision_line["operation"] == "read"

    def test_lookup_fields(self) -> None:
        stream = self._capture()
        store = InMemoryDocumentStore({"posts/123": {"channels": ["123"]}})

        PolicyEngine(store).evaluate(
            Principal.authenticated("myUserId"), Operation.READ, "posts", "123"
        )

        lookups = [line for line in _json_lines(stream) if "found" in line]
        assert {(line["collection"], line["found"]) for line in lookups} == {
            ("posts", True),
            ("users", False),
        }

    def test_malformed_logged_as_warning(self) -> None:
        stream = self._capture()
        store = InMemoryDocumentStore({
            "users/u1": {"channels": "123"},
            "posts/p1": {"channels": ["123"]},
        })

        PolicyEngine(store).evaluate(Principal.authenticated("u1"), Operation.READ, "posts", "p1")

        decision_line = _json_lines(stream)[-1]
        assert decision_line["level"] == "WARNING"
        assert decision_line["outcome"] == "malformed"
