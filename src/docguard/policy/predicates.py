"""
Predicates the rule sets are built from.

Each predicate is a plain function over an EvaluationContext, wrapped in a
Check with a name and a deny reason at the bottom of this module. Missing
related documents make a predicate false. Broken ones raise
MalformedDocumentError from the resolver.
"""

from docguard.errors import MalformedDocumentError
from docguard.policy.rules import Check, EvaluationContext
from docguard.schema import Channel, Post, User, Workspace
from docguard.store.base import Document


def channels_overlap(user: User, post: Post) -> bool:
    """True iff the user belongs to at least one channel the post is in."""
    return not user.channels.isdisjoint(post.channels)


def is_authenticated(ctx: EvaluationContext) -> bool:
    return ctx.principal.is_authenticated


def exists(ctx: EvaluationContext) -> bool:
    """The target is stored, or is being created with incoming data."""
    return ctx.target is not None


def has_profile(ctx: EvaluationContext) -> bool:
    return ctx.user() is not None


def has_channel_access(ctx: EvaluationContext) -> bool:
    user = ctx.user()
    post = ctx.target_as(Post)
    if user is None or post is None:
        return False
    return channels_overlap(user, post)


def is_self(ctx: EvaluationContext) -> bool:
    """The target is the principal's own profile document."""
    return ctx.principal.uid is not None and ctx.document_id == ctx.principal.uid


def _owner_field(ctx: EvaluationContext, doc: Document) -> str | None:
    if ctx.collection == ctx.config.collections.workspaces:
        return ctx.target_as(Workspace, doc).owner_id

    field_name = ctx.config.post_owner_field
    owner = doc.get(field_name)
    if owner is not None and not isinstance(owner, str):
        raise MalformedDocumentError(
            collection=ctx.collection,
            document_id=ctx.document_id,
            detail=f"{field_name}: expected a string, got {type(owner).__name__}",
        )
    return owner


def is_owner(ctx: EvaluationContext) -> bool:
    """
    The principal owns every existing version of the target.

    For writes both the stored document and the incoming data must name the
    principal, so ownership can't be taken over by rewriting the field.
    """
    versions = ctx.versions()
    if ctx.principal.uid is None or not versions:
        return False
    return all(_owner_field(ctx, doc) == ctx.principal.uid for doc in versions)


def is_channel_member(ctx: EvaluationContext) -> bool:
    user = ctx.user()
    return user is not None and ctx.document_id in user.channels


def _workspaces_of_target(ctx: EvaluationContext, versions: list[Document]) -> list[Workspace | None]:
    if ctx.collection == ctx.config.collections.workspaces:
        return [ctx.target_as(Workspace, doc) for doc in versions]
    workspaces = []
    for doc in versions:
        channel = ctx.target_as(Channel, doc)
        workspaces.append(ctx.resolver.workspace_of(channel))
    return workspaces


def is_workspace_member(ctx: EvaluationContext) -> bool:
    """
    The principal owns or is a member of the target's workspace.

    The target is either a workspace or a channel, in which case its
    workspaceId is followed. A dangling reference is not membership.
    """
    uid = ctx.principal.uid
    if uid is None or ctx.target is None:
        return False
    workspace = _workspaces_of_target(ctx, [ctx.target])[0]
    if workspace is None:
        return False
    return workspace.owner_id == uid or uid in workspace.members


def is_workspace_owner(ctx: EvaluationContext) -> bool:
    """The principal owns the workspace of every existing version of the target channel."""
    uid = ctx.principal.uid
    versions = ctx.versions()
    if uid is None or not versions:
        return False
    return all(
        workspace is not None and workspace.owner_id == uid
        for workspace in _workspaces_of_target(ctx, versions)
    )


IS_AUTHENTICATED = Check("is_authenticated", is_authenticated, "unauthenticated")
HAS_PROFILE = Check("has_profile", has_profile, "no profile")
EXISTS = Check("exists", exists, "document not found")
HAS_CHANNEL_ACCESS = Check("has_channel_access", has_channel_access, "no channel overlap")
IS_SELF = Check("is_self", is_self, "not the profile owner")
IS_OWNER = Check("is_owner", is_owner, "not the owner")
IS_CHANNEL_MEMBER = Check("is_channel_member", is_channel_member, "not a channel member")
IS_WORKSPACE_MEMBER = Check("is_workspace_member", is_workspace_member, "not a workspace member")
IS_WORKSPACE_OWNER = Check("is_workspace_owner", is_workspace_owner, "not the workspace owner")
