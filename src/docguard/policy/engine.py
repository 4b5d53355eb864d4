"""
Policy Engine for docguard.

The engine answers "may this principal perform this operation on this
document?" for every request a host forwards to it.

Design Principles:
    - Deny-by-default: Unknown collections and operations are denied
    - Stateless: Each call opens its own store snapshot and resolver
    - Missing data denies: An absent related document is a Deny
    - Broken data is visible: A wrong-typed stored field is Malformed, not Deny

How it works:
    1. Anonymous principals are denied outright
    2. The rule set is looked up by (collection, operation)
    3. The target document is loaded from a fresh snapshot; whether it must
       exist is up to the rule set
    4. The rule tree is evaluated, first failing condition gives the reason
"""

import logging
from typing import Any

from pydantic import BaseModel

from docguard.errors import MalformedDocumentError
from docguard.policy.predicates import (
    EXISTS,
    HAS_CHANNEL_ACCESS,
    HAS_PROFILE,
    IS_AUTHENTICATED,
    IS_CHANNEL_MEMBER,
    IS_OWNER,
    IS_SELF,
    IS_WORKSPACE_MEMBER,
    IS_WORKSPACE_OWNER,
)
from docguard.policy.rules import AllOf, AnyOf, EvaluationContext, Rule
from docguard.resolver import RelationshipResolver, parse_entity
from docguard.schema import (
    Channel,
    CollectionNames,
    Decision,
    EngineConfig,
    Operation,
    Post,
    Principal,
    User,
    Workspace,
)
from docguard.store.base import Document, DocumentStore, parse_path

logger = logging.getLogger(__name__)

RuleSets = dict[str, dict[Operation, Rule]]


def build_rule_sets(collections: CollectionNames) -> RuleSets:
    """Build the rule tree for every (collection, operation) pair."""
    posts = collections.posts
    channels = collections.channels
    workspaces = collections.workspaces
    users = collections.users

    return {
        posts: {
            # A missing post has no channels, so it fails the overlap check.
            Operation.READ: AllOf(
                IS_AUTHENTICATED, HAS_PROFILE, HAS_CHANNEL_ACCESS,
                name=f"{posts}.read",
            ),
            Operation.WRITE: AllOf(
                IS_AUTHENTICATED, HAS_PROFILE, EXISTS, IS_OWNER, HAS_CHANNEL_ACCESS,
                name=f"{posts}.write",
            ),
            Operation.DELETE: AllOf(
                IS_AUTHENTICATED, HAS_PROFILE, EXISTS, IS_OWNER,
                name=f"{posts}.delete",
            ),
        },
        channels: {
            Operation.READ: AllOf(
                IS_AUTHENTICATED,
                HAS_PROFILE,
                EXISTS,
                AnyOf(
                    IS_CHANNEL_MEMBER, IS_WORKSPACE_MEMBER,
                    name="channel_access", reason="no channel access",
                ),
                name=f"{channels}.read",
            ),
            Operation.WRITE: AllOf(
                IS_AUTHENTICATED, EXISTS, IS_WORKSPACE_OWNER, name=f"{channels}.write"
            ),
            Operation.DELETE: AllOf(
                IS_AUTHENTICATED, EXISTS, IS_WORKSPACE_OWNER, name=f"{channels}.delete"
            ),
        },
        workspaces: {
            Operation.READ: AllOf(
                IS_AUTHENTICATED, EXISTS, IS_WORKSPACE_MEMBER, name=f"{workspaces}.read"
            ),
            Operation.WRITE: AllOf(IS_AUTHENTICATED, EXISTS, IS_OWNER, name=f"{workspaces}.write"),
            Operation.DELETE: AllOf(IS_AUTHENTICATED, EXISTS, IS_OWNER, name=f"{workspaces}.delete"),
        },
        users: {
            Operation.READ: AllOf(IS_AUTHENTICATED, IS_SELF, EXISTS, name=f"{users}.read"),
            Operation.WRITE: AllOf(IS_AUTHENTICATED, IS_SELF, EXISTS, name=f"{users}.write"),
            Operation.DELETE: AllOf(IS_AUTHENTICATED, IS_SELF, EXISTS, name=f"{users}.delete"),
        },
    }


class PolicyEngine:
    """
    Central authorization evaluator for docguard.

    Usage:
        engine = PolicyEngine(store)
        decision = engine.evaluate(
            Principal.authenticated("myUserId"), Operation.READ, "posts", "123"
        )
        if decision.allowed:
            # serve the document
        elif decision.is_malformed:
            # internal error, the stored data is broken
        else:
            # permission denied

    Attributes:
        store: Document store the rules read related documents from
        config: Engine configuration
        rule_sets: Rule tree per collection and operation
    """

    def __init__(self, store: DocumentStore, config: EngineConfig | None = None) -> None:
        self.store = store
        self.config = config or EngineConfig()
        self.rule_sets = build_rule_sets(self.config.collections)
        self._models: dict[str, type[BaseModel]] = {
            self.config.collections.users: User,
            self.config.collections.workspaces: Workspace,
            self.config.collections.channels: Channel,
            self.config.collections.posts: Post,
        }

    def evaluate(
        self,
        principal: Principal,
        operation: Operation | str,
        collection: str,
        document_id: str,
        document_snapshot: dict[str, Any] | None = None,
    ) -> Decision:
        """
        Evaluate one request.

        Args:
            principal: Who is asking
            operation: read, write or delete
            collection: Collection of the target document
            document_id: ID of the target document
            document_snapshot: Proposed document data, for writes

        Returns:
            Decision (allow, deny with reason, or malformed with detail)
        """
        decision = self._evaluate(principal, operation, collection, document_id, document_snapshot)
        op = getattr(operation, "value", operation)
        fields = {
            "outcome": decision.outcome.value,
            "rule": decision.rule_matched,
            "collection": collection,
            "document_id": document_id,
            "uid": principal.uid,
            "operation": op,
        }

        if decision.is_malformed:
            logger.warning(
                "Malformed data evaluating %s %s on %s/%s: %s",
                principal, op, collection, document_id, decision.reason,
                extra=fields,
            )
        else:
            logger.debug(
                "%s %s %s on %s/%s: %s (%s)",
                decision.outcome.value, principal, op, collection,
                document_id, decision.reason, decision.rule_matched,
                extra=fields,
            )
        return decision

    def evaluate_path(
        self,
        principal: Principal,
        operation: Operation | str,
        path: str,
        document_snapshot: dict[str, Any] | None = None,
    ) -> Decision:
        """
        Evaluate a request addressed by collection/id path.

        Raises:
            InvalidPathError: If the path isn't collection/id
        """
        collection, document_id = parse_path(path)
        return self.evaluate(principal, operation, collection, document_id, document_snapshot)

    def rule_for(self, collection: str, operation: Operation) -> Rule | None:
        return self.rule_sets.get(collection, {}).get(operation)

    def _evaluate(
        self,
        principal: Principal,
        operation: Operation | str,
        collection: str,
        document_id: str,
        document_snapshot: dict[str, Any] | None,
    ) -> Decision:
        if not principal.is_authenticated:
            return Decision.deny("unauthenticated", rule="is_authenticated")

        try:
            operation = Operation(operation)
        except ValueError:
            return Decision.deny(f"Unknown operation: {operation}", rule="deny_by_default")

        rule = self.rule_for(collection, operation)
        if rule is None:
            return Decision.deny(
                f"no rule set for {collection}.{operation.value}",
                rule="deny_by_default",
            )

        if operation is Operation.WRITE and document_snapshot is not None:
            invalid = self._check_incoming(collection, document_id, document_snapshot)
            if invalid is not None:
                return invalid

        with self.store.snapshot() as view:
            resolver = RelationshipResolver(view, self.config.collections)
            try:
                resource = resolver.document(collection, document_id)
                ctx = EvaluationContext(
                    principal=principal,
                    operation=operation,
                    collection=collection,
                    document_id=document_id,
                    resource=resource,
                    incoming=document_snapshot if operation is Operation.WRITE else None,
                    resolver=resolver,
                    config=self.config,
                )
                return rule.evaluate(ctx)
            except MalformedDocumentError as e:
                return Decision.malformed(e.message, rule="resolver")

    def _check_incoming(
        self,
        collection: str,
        document_id: str,
        data: Document,
    ) -> Decision | None:
        """Incoming write data that doesn't fit the collection's model is denied."""
        try:
            parse_entity(self._models[collection], data, collection, document_id)
        except MalformedDocumentError as e:
            return Decision.deny(f"invalid document data: {e.detail}", rule="schema")
        return None
