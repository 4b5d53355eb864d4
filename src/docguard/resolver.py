"""
Relationship resolver for docguard.

Rules often need documents other than the one being accessed: a post read
needs the requester's profile, a channel rule needs the channel's workspace.
The resolver performs those hops against a store snapshot and validates what
it finds into entity models.

One resolver serves one evaluation. It caches every lookup (hits and misses)
so a rule tree that asks for the same user twice costs one read, and it is
thrown away afterwards.
"""

import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from docguard.errors import MalformedDocumentError
from docguard.schema import Channel, CollectionNames, Post, User, Workspace
from docguard.store.base import Document, DocumentStore

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)


class RelationshipResolver:
    """
    Follows reference fields between documents for one evaluation.

    Usage:
        with store.snapshot() as view:
            resolver = RelationshipResolver(view)
            channel = resolver.channel("123")
            workspace = resolver.workspace_of(channel) if channel else None

    Attributes:
        lookups: Number of reads issued to the store (cache misses)
    """

    def __init__(
        self,
        store: DocumentStore,
        collections: CollectionNames | None = None,
    ) -> None:
        self.store = store
        self.collections = collections or CollectionNames()
        self.lookups = 0
        self._documents: dict[tuple[str, str], Document | None] = {}

    def document(self, collection: str, document_id: str) -> Document | None:
        """Fetch a raw document, reading the store at most once per id."""
        key = (collection, document_id)
        if key not in self._documents:
            self.lookups += 1
            self._documents[key] = self.store.get(collection, document_id)
            found = self._documents[key] is not None
            logger.debug(
                "Resolved %s/%s (found=%s)",
                collection,
                document_id,
                found,
                extra={"collection": collection, "document_id": document_id, "found": found},
            )
        return self._documents[key]

    def entity(
        self,
        model: type[EntityT],
        collection: str,
        document_id: str,
    ) -> EntityT | None:
        """
        Fetch a document and validate it into an entity.

        Returns:
            The entity, or None if the document doesn't exist

        Raises:
            MalformedDocumentError: If the document exists but doesn't validate
        """
        data = self.document(collection, document_id)
        if data is None:
            return None
        return parse_entity(model, data, collection, document_id)

    def user(self, uid: str) -> User | None:
        return self.entity(User, self.collections.users, uid)

    def workspace(self, workspace_id: str) -> Workspace | None:
        return self.entity(Workspace, self.collections.workspaces, workspace_id)

    def channel(self, channel_id: str) -> Channel | None:
        return self.entity(Channel, self.collections.channels, channel_id)

    def post(self, post_id: str) -> Post | None:
        return self.entity(Post, self.collections.posts, post_id)

    def workspace_of(self, channel: Channel) -> Workspace | None:
        """Follow a channel's workspaceId. A dangling reference gives None."""
        return self.workspace(channel.workspace_id)


def parse_entity(
    model: type[EntityT],
    data: Document,
    collection: str,
    document_id: str,
) -> EntityT:
    """
    Validate raw document data into an entity model.

    Raises:
        MalformedDocumentError: If a field is missing or has the wrong type
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        detail = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise MalformedDocumentError(
            collection=collection,
            document_id=document_id,
            detail=detail,
        ) from e
