"""
Pytest configuration and fixtures for docguard tests.

This module provides shared fixtures used across unit and integration tests.
"""

import logging
import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest

from docguard.policy import PolicyEngine
from docguard.schema import Principal
from docguard.store import InMemoryDocumentStore

USER_ID = "myUserId"
WORKSPACE_ID = "myWorkspaceId"


@pytest.fixture(autouse=True)
def reset_docguard_logger() -> Generator[None, None, None]:
    """Undo configure_logging() calls made by a test."""
    logger = logging.getLogger("docguard")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def scenario_documents() -> dict[str, dict[str, Any]]:
    """Workspace, channel, user and post where the user can read the post."""
    return {
        f"workspaces/{WORKSPACE_ID}": {"name": "Levels Health Inc."},
        "channels/123": {"workspaceId": WORKSPACE_ID},
        f"users/{USER_ID}": {
            "firstName": "John",
            "lastName": "Test",
            "channels": ["123"],
        },
        "posts/123": {"channels": ["123"]},
    }


@pytest.fixture
def store(scenario_documents: dict[str, dict[str, Any]]) -> InMemoryDocumentStore:
    """In-memory store seeded with the scenario documents."""
    return InMemoryDocumentStore(scenario_documents)


@pytest.fixture
def engine(store: InMemoryDocumentStore) -> PolicyEngine:
    """Engine over the scenario store."""
    return PolicyEngine(store)


@pytest.fixture
def user() -> Principal:
    """The scenario's authenticated principal."""
    return Principal.authenticated(USER_ID)


@pytest.fixture
def sample_fixtures_yaml() -> str:
    """Return the scenario as fixture-file YAML."""
    return """
workspaces/myWorkspaceId:
  name: Levels Health Inc.
channels/123:
  workspaceId: myWorkspaceId
users/myUserId:
  firstName: John
  lastName: Test
  channels: ["123"]
posts/123:
  channels: ["123"]
"""
