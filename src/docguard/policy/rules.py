"""
Composable rule tree for docguard.

A rule set is a tree of three node types:

    - Check: a named predicate with the reason it denies with
    - AllOf: short-circuit AND, the first failing child decides
    - AnyOf: short-circuit OR, the first passing child decides

Every node evaluates to a Decision. A MalformedDocumentError raised by a
predicate is not caught here; it unwinds the whole tree and the engine turns
it into a malformed Decision.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable

from docguard.resolver import EntityT, RelationshipResolver, parse_entity
from docguard.schema import Decision, EngineConfig, Operation, Principal, User
from docguard.store.base import Document


@dataclass
class EvaluationContext:
    """
    Everything a predicate may look at for one request.

    Attributes:
        principal: Who is asking
        operation: What they want to do
        collection: Collection of the target document
        document_id: ID of the target document
        resource: The stored target document, if it exists
        incoming: The proposed document data for a write, if given
        resolver: Per-evaluation resolver for related documents
        config: Engine configuration
    """

    principal: Principal
    operation: Operation
    collection: str
    document_id: str
    resource: Document | None
    incoming: Document | None
    resolver: RelationshipResolver
    config: EngineConfig = field(default_factory=EngineConfig)

    @property
    def target(self) -> Document | None:
        """The document the rule is about: incoming data for writes, else stored."""
        if self.operation is Operation.WRITE and self.incoming is not None:
            return self.incoming
        return self.resource

    def versions(self) -> list[Document]:
        """Stored and incoming versions of the target, whichever exist."""
        return [doc for doc in (self.resource, self.incoming) if doc is not None]

    def target_as(self, model: type[EntityT], data: Document | None = None) -> EntityT | None:
        """Validate the target (or a given version of it) into an entity model."""
        data = self.target if data is None else data
        if data is None:
            return None
        return parse_entity(model, data, self.collection, self.document_id)

    def user(self) -> User | None:
        """The requester's profile, or None if anonymous or missing."""
        if self.principal.uid is None:
            return None
        return self.resolver.user(self.principal.uid)


class Rule(ABC):
    """Base class for rule tree nodes."""

    name: str

    @abstractmethod
    def evaluate(self, ctx: EvaluationContext) -> Decision:
        ...

    @abstractmethod
    def describe(self, indent: int = 0) -> list[str]:
        """Render this node and its children as indented lines."""
        ...


class Check(Rule):
    """
    A leaf predicate.

    Args:
        name: Rule name, reported as rule_matched on denial
        test: Predicate over the evaluation context
        reason: Deny reason when the predicate is false
    """

    def __init__(
        self,
        name: str,
        test: Callable[[EvaluationContext], bool],
        reason: str,
    ) -> None:
        self.name = name
        self.test = test
        self.reason = reason

    def evaluate(self, ctx: EvaluationContext) -> Decision:
        if self.test(ctx):
            return Decision.allow(f"{self.name} passed", rule=self.name)
        return Decision.deny(self.reason, rule=self.name)

    def describe(self, indent: int = 0) -> list[str]:
        return [f"{'  ' * indent}{self.name}"]

    def __repr__(self) -> str:
        return f"Check({self.name!r})"


class AllOf(Rule):
    """Conjunction. Denies with the first failing child's decision."""

    def __init__(self, *rules: Rule, name: str = "all_of") -> None:
        self.rules = rules
        self.name = name

    def evaluate(self, ctx: EvaluationContext) -> Decision:
        for rule in self.rules:
            decision = rule.evaluate(ctx)
            if not decision.allowed:
                return decision
        return Decision.allow("all conditions met", rule=self.name)

    def describe(self, indent: int = 0) -> list[str]:
        lines = [f"{'  ' * indent}all of:"]
        for rule in self.rules:
            lines.extend(rule.describe(indent + 1))
        return lines


class AnyOf(Rule):
    """Disjunction. Allows with the first passing child, else denies with its own reason."""

    def __init__(self, *rules: Rule, name: str = "any_of", reason: str = "no rule matched") -> None:
        self.rules = rules
        self.name = name
        self.reason = reason

    def evaluate(self, ctx: EvaluationContext) -> Decision:
        for rule in self.rules:
            decision = rule.evaluate(ctx)
            if decision.allowed:
                return decision
        return Decision.deny(self.reason, rule=self.name)

    def describe(self, indent: int = 0) -> list[str]:
        lines = [f"{'  ' * indent}any of:"]
        for rule in self.rules:
            lines.extend(rule.describe(indent + 1))
        return lines
