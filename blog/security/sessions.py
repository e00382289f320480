"""
Session carrier: a signed JWT stored in an HttpOnly cookie.

The token carries the identity claims the access-control policy needs
(user id, email, display name, role names), so authorization decisions
do not have to hit the database for the caller's roles.  Role claims are
a snapshot taken at login; a role change takes effect on the next login.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict

from blog.config import settings
from blog.models import User


class Principal(BaseModel):
    """The authenticated caller as seen by the policy layer."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    email: str
    name: str = ""
    roles: frozenset[str] = frozenset()

    def has_any_role(self, *roles: str) -> bool:
        return not self.roles.isdisjoint(roles)

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            user_id=user.id,
            email=user.email,
            name=user.display_name,
            roles=frozenset(user.role_names),
        )


def session_lifetime(remember_me: bool) -> timedelta:
    if remember_me:
        return timedelta(days=settings.SESSION_REMEMBER_DAYS)
    return timedelta(hours=settings.SESSION_TTL_HOURS)


def create_session_token(principal: Principal, lifetime: timedelta) -> str:
    """Encode *principal* as a signed token that expires after *lifetime*."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(principal.user_id),
        "email": principal.email,
        "name": principal.name,
        "roles": sorted(principal.roles),
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.SESSION_ALGORITHM)


def decode_session_token(token: str | None) -> Optional[Principal]:
    """
    Return the Principal encoded in *token*, or None when the token is
    missing, tampered with, expired or malformed.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.SESSION_ALGORITHM])
        return Principal(
            user_id=int(payload["sub"]),
            email=payload.get("email", ""),
            name=payload.get("name", ""),
            roles=frozenset(payload.get("roles", [])),
        )
    except (JWTError, KeyError, TypeError, ValueError):
        return None
