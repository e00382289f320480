"""
Access-control policy.

A policy is an async callable that takes an ``AccessContext`` (who is
calling, which resource, which session to look it up in) and returns a
``Decision``.  Policies are built from small combinators and evaluated
explicitly per operation, so they can be tested without the web layer::

    can_edit = require_owner_or_role(article_owner)
    decision = await evaluate(can_edit, principal, resource_id=42, db=db)

Decision procedure
------------------
1. Anonymous caller on a protected operation → ``LOGIN_REQUIRED``.
2. Caller lacks every required role → ``ACCESS_DENIED``.
3. Ownership-gated operation: ``Admin`` / ``Moderator`` bypass the check;
   everyone else must be the resource's owning user.  A resource that
   cannot be resolved counts as not owned → ``ACCESS_DENIED``.
"""
import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from blog.audit import audit
from blog.exceptions import AccessDeniedError, UnauthenticatedError
from blog.models import ADMIN, MODERATOR
from blog.repositories import article_repository, comment_repository
from blog.security.sessions import Principal

# Roles that may act on any article, comment or profile regardless of owner.
OWNERSHIP_BYPASS_ROLES: tuple[str, ...] = (ADMIN, MODERATOR)


class Decision(str, enum.Enum):
    ALLOW = "allow"
    LOGIN_REQUIRED = "login_required"
    ACCESS_DENIED = "access_denied"


@dataclass(frozen=True)
class AccessContext:
    principal: Optional[Principal]
    resource_id: Optional[int] = None
    db: Optional[AsyncSession] = None


Policy = Callable[[AccessContext], Awaitable[Decision]]
OwnerLookup = Callable[[Optional[AsyncSession], int], Awaitable[Optional[int]]]


# ---------------------------------------------------------------------------
# Owner lookups: resource id -> owning user id (None when unresolvable)
# ---------------------------------------------------------------------------

async def article_owner(db: Optional[AsyncSession], article_id: int) -> Optional[int]:
    article = await article_repository.get_by_id(db, article_id)
    return article.author_id if article is not None else None


async def comment_owner(db: Optional[AsyncSession], comment_id: int) -> Optional[int]:
    comment = await comment_repository.get_by_id(db, comment_id)
    return comment.author_id if comment is not None else None


async def user_owner(db: Optional[AsyncSession], user_id: int) -> Optional[int]:
    # A profile is owned by the user it describes.
    return user_id


# ---------------------------------------------------------------------------
# Combinators
# ---------------------------------------------------------------------------

def require_auth() -> Policy:
    """Allow any authenticated caller."""

    async def policy(ctx: AccessContext) -> Decision:
        if ctx.principal is None:
            return Decision.LOGIN_REQUIRED
        return Decision.ALLOW

    return policy


def require_role(*roles: str) -> Policy:
    """Allow authenticated callers holding at least one of *roles*."""

    async def policy(ctx: AccessContext) -> Decision:
        if ctx.principal is None:
            return Decision.LOGIN_REQUIRED
        if roles and not ctx.principal.has_any_role(*roles):
            return Decision.ACCESS_DENIED
        return Decision.ALLOW

    return policy


def require_owner_or_role(
    owner_lookup: OwnerLookup,
    roles: tuple[str, ...] = OWNERSHIP_BYPASS_ROLES,
) -> Policy:
    """
    Allow callers holding one of *roles*, or the user that owns the
    resource identified by ``ctx.resource_id``.
    """

    async def policy(ctx: AccessContext) -> Decision:
        if ctx.principal is None:
            return Decision.LOGIN_REQUIRED
        if roles and ctx.principal.has_any_role(*roles):
            return Decision.ALLOW
        if ctx.resource_id is None:
            return Decision.ACCESS_DENIED
        owner_id = await owner_lookup(ctx.db, ctx.resource_id)
        if owner_id is None or owner_id != ctx.principal.user_id:
            return Decision.ACCESS_DENIED
        return Decision.ALLOW

    return policy


def all_of(*policies: Policy) -> Policy:
    """Allow only when every policy allows; the first refusal wins."""

    async def policy(ctx: AccessContext) -> Decision:
        for inner in policies:
            decision = await inner(ctx)
            if decision is not Decision.ALLOW:
                return decision
        return Decision.ALLOW

    return policy


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

async def evaluate(
    policy: Policy,
    principal: Optional[Principal],
    resource_id: Optional[int] = None,
    db: Optional[AsyncSession] = None,
) -> Decision:
    return await policy(AccessContext(principal=principal, resource_id=resource_id, db=db))


async def enforce(
    policy: Policy,
    principal: Optional[Principal],
    resource_id: Optional[int] = None,
    db: Optional[AsyncSession] = None,
    action: str = "",
) -> None:
    """
    Evaluate *policy* and raise when it refuses.

    ``LOGIN_REQUIRED`` raises UnauthenticatedError, ``ACCESS_DENIED``
    raises AccessDeniedError.  Refusals of authenticated callers are
    recorded in the audit log.
    """
    decision = await evaluate(policy, principal, resource_id, db)
    if decision is Decision.ALLOW:
        return
    if decision is Decision.LOGIN_REQUIRED:
        raise UnauthenticatedError()

    audit.log_user_action(
        "ACCESS_DENIED",
        f"Denied {action or 'operation'} on resource {resource_id}",
        principal.user_id if principal else None,
        principal.name if principal else None,
    )
    raise AccessDeniedError()
