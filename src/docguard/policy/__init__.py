"""
Policy Engine module for docguard.

This module implements the authorization model: deny-by-default rule sets,
keyed by collection and operation, built from composable predicates.

Key concepts:
    - Decision: The result of evaluating a request (allow/deny/malformed + reason)
    - Rule: A node in a rule tree (Check, AllOf, AnyOf)
    - PolicyEngine: Central evaluator that picks and runs the rule set

The engine must be:
    - Fail-closed: Missing data denies, broken data is malformed
    - Predictable: Same inputs against the same store give the same decision
    - Explainable: Every denial names the rule that caused it
"""

from docguard.policy.engine import PolicyEngine, build_rule_sets
from docguard.policy.predicates import channels_overlap
from docguard.policy.rules import AllOf, AnyOf, Check, EvaluationContext, Rule

__all__ = [
    "AllOf",
    "AnyOf",
    "Check",
    "EvaluationContext",
    "PolicyEngine",
    "Rule",
    "build_rule_sets",
    "channels_overlap",
]
