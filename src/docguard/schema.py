"""
Schema definitions for docguard.

This module defines the Pydantic models used throughout docguard:
- Principal: Who is asking
- Operation: What they want to do
- User/Workspace/Channel/Post: The documents rules consult
- Decision: The verdict of one evaluation
- EngineConfig: Collection names and field names the rules use

Design Decisions:
    - Models are immutable (frozen=True)
    - Entity models allow extra fields, since stored documents are schemaless
      and carry more than the rules look at
    - Entity fields use the stored camelCase names as aliases
"""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docguard.errors import ConfigError


# =============================================================================
# Enums
# =============================================================================


class Operation(str, Enum):
    """Operations a principal can request on a document."""

    READ = "read"
    WRITE = "write"
    DELETE = "delete"


class DecisionOutcome(str, Enum):
    """
    Outcome of an evaluation.

    DENY is a normal policy answer. MALFORMED means the data the rules needed
    was broken; it blocks the operation too, but signals a defect.
    """

    ALLOW = "allow"
    DENY = "deny"
    MALFORMED = "malformed"


# =============================================================================
# Principal
# =============================================================================


class Principal(BaseModel):
    """
    The identity attempting an operation.

    A principal with no uid is anonymous.

    Attributes:
        uid: Authenticated user id, or None for anonymous requests
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    uid: str | None = Field(
        default=None,
        description="Authenticated user id (None = anonymous)",
        min_length=1,
    )

    @classmethod
    def anonymous(cls) -> "Principal":
        """Create an anonymous principal."""
        return cls()

    @classmethod
    def authenticated(cls, uid: str) -> "Principal":
        """Create an authenticated principal."""
        return cls(uid=uid)

    @property
    def is_authenticated(self) -> bool:
        return self.uid is not None

    def __str__(self) -> str:
        return f"authenticated({self.uid})" if self.uid else "anonymous"


# =============================================================================
# Entities
# =============================================================================


class User(BaseModel):
    """
    A user profile, stored at users/{uid}.

    Attributes:
        first_name: Given name
        last_name: Family name
        channels: IDs of the channels this user belongs to
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    channels: frozenset[str] = Field(default_factory=frozenset)


class Workspace(BaseModel):
    """
    A tenant, stored at workspaces/{id}.

    Attributes:
        name: Display name
        owner_id: User id of the owner, if any
        members: User ids with membership in this workspace
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    name: str | None = None
    owner_id: str | None = Field(default=None, alias="ownerId")
    members: frozenset[str] = Field(default_factory=frozenset)


class Channel(BaseModel):
    """
    A channel, stored at channels/{id}.

    The workspace reference is weak: it may point at a workspace that no
    longer exists.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    workspace_id: str = Field(..., alias="workspaceId", min_length=1)


class Post(BaseModel):
    """
    A post, stored at posts/{id}.

    Attributes:
        channels: IDs of the channels the post is visible in
        author_id: User id of the author, if recorded
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    channels: frozenset[str] = Field(...)
    author_id: str | None = Field(default=None, alias="authorId")


# =============================================================================
# Decision
# =============================================================================


class Decision(BaseModel):
    """
    Result of evaluating one request.

    Attributes:
        outcome: allow, deny or malformed
        reason: Human-readable explanation (diagnostic only)
        rule_matched: Name of the rule that produced this decision
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    outcome: DecisionOutcome = Field(..., description="Verdict of the evaluation")
    reason: str = Field(..., description="Human-readable explanation")
    rule_matched: str | None = Field(
        default=None,
        description="Which rule produced this decision",
    )

    @classmethod
    def allow(cls, reason: str = "allowed", rule: str | None = None) -> "Decision":
        """Create an ALLOW decision."""
        return cls(outcome=DecisionOutcome.ALLOW, reason=reason, rule_matched=rule)

    @classmethod
    def deny(cls, reason: str, rule: str | None = None) -> "Decision":
        """Create a DENY decision."""
        return cls(outcome=DecisionOutcome.DENY, reason=reason, rule_matched=rule)

    @classmethod
    def malformed(cls, detail: str, rule: str | None = None) -> "Decision":
        """Create a MALFORMED decision."""
        return cls(outcome=DecisionOutcome.MALFORMED, reason=detail, rule_matched=rule)

    @property
    def allowed(self) -> bool:
        return self.outcome is DecisionOutcome.ALLOW

    @property
    def denied(self) -> bool:
        return self.outcome is DecisionOutcome.DENY

    @property
    def is_malformed(self) -> bool:
        return self.outcome is DecisionOutcome.MALFORMED

    @property
    def status_code(self) -> int:
        """HTTP status a host should answer with for this decision."""
        if self.allowed:
            return 200
        if self.denied:
            return 403
        return 500


# =============================================================================
# Configuration
# =============================================================================


class CollectionNames(BaseModel):
    """Names of the collections the rule sets are keyed by."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    users: str = Field(default="users", min_length=1)
    workspaces: str = Field(default="workspaces", min_length=1)
    channels: str = Field(default="channels", min_length=1)
    posts: str = Field(default="posts", min_length=1)


class EngineConfig(BaseModel):
    """
    Engine configuration.

    Attributes:
        collections: Collection names for each entity kind
        post_owner_field: Field of a post holding its author's user id
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    collections: CollectionNames = Field(
        default_factory=CollectionNames,
        description="Collection names for each entity kind",
    )
    post_owner_field: str = Field(
        default="authorId",
        description="Field of a post holding its author's user id",
        min_length=1,
    )


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def load_config(path: Path | str) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Raises:
        ConfigError: If the file is unreadable or doesn't match the schema
    """
    path = Path(path)
    try:
        with path.open() as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(source=str(path), underlying_error=str(e)) from e

    return _parse_config(content, source=str(path))


def load_config_from_string(content: str) -> EngineConfig:
    """Load engine configuration from a YAML string."""
    return _parse_config(content, source="<string>")


def _parse_config(content: str, source: str) -> EngineConfig:
    try:
        data: Any = yaml.safe_load(content) or {}
        return EngineConfig.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigError(source=source, underlying_error=str(e)) from e
