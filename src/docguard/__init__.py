"""
docguard - Authorization engine for hierarchical document stores.

docguard answers one question: may this principal perform this operation
on this document? Rules are typed predicate trees evaluated in Python,
consulting related documents (users, channels, workspaces) through an
injected, read-only store.

It provides:
- Deny-by-default rule sets keyed by collection and operation
- Cross-collection lookups through a per-decision resolver
- A Decision type that separates policy denials from malformed data

Example usage:
    $ docguard check posts/123 --data fixtures.yaml --uid myUserId
    $ docguard rules
"""

__version__ = "0.1.0"
__author__ = "docguard Contributors"

__all__ = [
    "__version__",
    "__author__",
]
