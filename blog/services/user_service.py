"""
User service: registration, credential checks and profile management.

Passwords are hashed with bcrypt on the way in and only ever compared
through ``verify_password``; the hash never leaves this layer in a
response schema.  Emails are trimmed and lower-cased before they are
stored or compared, so ``Bob@Example.com`` and ``bob@example.com`` are
the same account.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import (
    ConstraintViolationError,
    DuplicateEntityError,
    NotFoundError,
    ValidationError,
)
from blog.models import NAME_MAX_LENGTH, USER, User, utcnow
from blog.repositories import role_repository, user_repository
from blog.schemas import UserUpdate
from blog.security.passwords import hash_password, verify_password
from blog.services._helpers import normalize_email, optional_text, require_email

logger = logging.getLogger(__name__)


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    """
    Create a new account and return it.

    The standard ``User`` role is attached when it has been seeded.
    Raises ValidationError for a blank password or malformed email and
    DuplicateEntityError when the email is already registered.
    """
    if not password or not password.strip():
        raise ValidationError("Password is required")
    email = require_email(email)

    if await user_repository.email_exists(db, email):
        raise DuplicateEntityError("A user with this email already exists")

    now = utcnow()
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=optional_text(first_name, "First name", NAME_MAX_LENGTH),
        last_name=optional_text(last_name, "Last name", NAME_MAX_LENGTH),
        registered_at=now,
        created_at=now,
        roles=[],
    )

    default_role = await role_repository.get_by_name(db, USER)
    if default_role is not None:
        user.roles.append(default_role)

    try:
        await user_repository.add(db, user)
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same email.
        raise DuplicateEntityError("A user with this email already exists") from exc

    logger.info("User registered", extra={"user_id": user.id})
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await user_repository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> User:
    user = await user_repository.get_by_email(db, normalize_email(email))
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_user_with_roles(db: AsyncSession, user_id: int) -> User | None:
    """
    Return the user with roles populated, or None.

    Used for authorization decisions where "no such user" is a valid
    answer rather than an error.
    """
    return await user_repository.get_by_id(db, user_id)


async def get_users(db: AsyncSession) -> list[User]:
    """Return all users, most recently registered first."""
    return await user_repository.get_all(db)


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate) -> User:
    """
    Overwrite the mutable profile fields of *user_id*.

    Only first and last name change here; email and credentials are
    never touched by a profile edit.
    """
    user = await get_user(db, user_id)
    user.first_name = optional_text(data.first_name, "First name", NAME_MAX_LENGTH)
    user.last_name = optional_text(data.last_name, "Last name", NAME_MAX_LENGTH)
    user.updated_at = utcnow()
    return await user_repository.update(db, user)


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """
    Delete *user_id*.

    Refused with ConstraintViolationError while the user still authors
    articles or comments; their role memberships go with them.
    """
    user = await get_user(db, user_id)
    if await user_repository.count_authored(db, user.id):
        raise ConstraintViolationError(
            "User cannot be deleted while they still author articles or comments"
        )
    try:
        await user_repository.delete(db, user)
    except IntegrityError as exc:
        raise ConstraintViolationError(
            "User cannot be deleted while they still author articles or comments"
        ) from exc


async def validate_credentials(db: AsyncSession, email: str, password: str) -> bool:
    """Return True when *email* exists and *password* verifies against its hash."""
    return await authenticate(db, email, password) is not None


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user (roles loaded) for valid credentials, else None."""
    if not email or not password:
        return None
    user = await user_repository.get_by_email(db, normalize_email(email))
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def user_has_role(db: AsyncSession, user_id: int, role_name: str) -> bool:
    return await user_repository.has_role(db, user_id, role_name)
