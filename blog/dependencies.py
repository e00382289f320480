"""
FastAPI dependencies for sessions and access control.

Routers never check roles or ownership inline; they declare one of the
``Annotated`` aliases at the bottom of this module and the matching
policy is enforced before the handler body runs::

    @router.put("/{article_id}")
    async def update_article(article_id: int, principal: ArticleEditor, ...):
        ...
"""
from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from blog.config import settings
from blog.database import get_db
from blog.models import ADMIN, MODERATOR
from blog.security.policy import (
    Policy,
    article_owner,
    comment_owner,
    enforce,
    require_auth,
    require_owner_or_role,
    require_role,
    user_owner,
)
from blog.security.sessions import Principal, decode_session_token

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_principal(request: Request) -> Optional[Principal]:
    """Return the caller decoded from the session cookie, or None."""
    return decode_session_token(request.cookies.get(settings.SESSION_COOKIE_NAME))


OptionalPrincipal = Annotated[Optional[Principal], Depends(get_current_principal)]


class Authorize:
    """
    Dependency that enforces *policy* for the current request.

    When *id_param* is given, the resource id handed to the policy is read
    from that path parameter.  A non-integer value is passed as None,
    which ownership checks treat as "not owned".

    Returns the authenticated Principal so handlers can use it directly.
    """

    def __init__(self, policy: Policy, id_param: str | None = None, action: str = "") -> None:
        self.policy = policy
        self.id_param = id_param
        self.action = action

    async def __call__(
        self,
        request: Request,
        principal: OptionalPrincipal,
        db: DbSession,
    ) -> Principal:
        resource_id = None
        if self.id_param:
            raw = request.path_params.get(self.id_param)
            try:
                resource_id = int(raw) if raw is not None else None
            except ValueError:
                resource_id = None

        await enforce(
            self.policy,
            principal,
            resource_id=resource_id,
            db=db,
            action=self.action or f"{request.method} {request.url.path}",
        )
        return principal


# Convenience dependencies
CurrentPrincipal = Annotated[Principal, Depends(Authorize(require_auth()))]
AdminPrincipal = Annotated[Principal, Depends(Authorize(require_role(ADMIN)))]
StaffPrincipal = Annotated[Principal, Depends(Authorize(require_role(ADMIN, MODERATOR)))]
ArticleEditor = Annotated[
    Principal, Depends(Authorize(require_owner_or_role(article_owner), "article_id"))
]
CommentEditor = Annotated[
    Principal, Depends(Authorize(require_owner_or_role(comment_owner), "comment_id"))
]
ProfileEditor = Annotated[
    Principal, Depends(Authorize(require_owner_or_role(user_owner), "user_id"))
]
