"""
Role service: role CRUD and user role membership.

The three standard roles (``Admin``, ``Moderator``, ``User``) are
permanent: they are seeded at startup, cannot be renamed and can never
be deleted.  Any other role can be deleted only once no user holds it.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import DuplicateEntityError, InvalidOperationError, NotFoundError
from blog.models import (
    ADMIN,
    MODERATOR,
    ROLE_DESCRIPTION_MAX_LENGTH,
    ROLE_NAME_MAX_LENGTH,
    STANDARD_ROLES,
    USER,
    Role,
    utcnow,
)
from blog.repositories import role_repository, user_repository
from blog.schemas import RoleUpdate
from blog.services._helpers import get_or_create, require_text

logger = logging.getLogger(__name__)

STANDARD_ROLE_DESCRIPTIONS: dict[str, str] = {
    ADMIN: "System administrator",
    MODERATOR: "Content moderator",
    USER: "Regular user",
}


async def ensure_standard_roles(db: AsyncSession) -> list[Role]:
    """Get-or-create the three standard roles and return them."""
    roles = []
    for name in sorted(STANDARD_ROLES):
        description = STANDARD_ROLE_DESCRIPTIONS[name]
        role = await get_or_create(
            db,
            lambda name=name: role_repository.get_by_name(db, name),
            lambda name=name, description=description: Role(name=name, description=description),
        )
        roles.append(role)
    return roles


async def create_role(db: AsyncSession, name: str, description: str) -> Role:
    name = require_text(name, "Role name", ROLE_NAME_MAX_LENGTH)
    description = require_text(description, "Role description", ROLE_DESCRIPTION_MAX_LENGTH)

    if await role_repository.get_by_name(db, name) is not None:
        raise DuplicateEntityError(f"Role '{name}' already exists")

    try:
        async with db.begin_nested():
            role = await role_repository.add(db, Role(name=name, description=description))
    except IntegrityError as exc:
        raise DuplicateEntityError(f"Role '{name}' already exists") from exc
    logger.info("Role created", extra={"role_id": role.id})
    return role


async def get_role(db: AsyncSession, role_id: int) -> Role:
    role = await role_repository.get_by_id(db, role_id)
    if role is None:
        raise NotFoundError("Role not found")
    return role


async def get_role_by_name(db: AsyncSession, name: str) -> Role | None:
    return await role_repository.get_by_name(db, name)


async def get_roles(db: AsyncSession) -> list[Role]:
    return await role_repository.get_all(db)


async def update_role(db: AsyncSession, role_id: int, data: RoleUpdate) -> Role:
    """
    Rename and/or re-describe a role.

    Standard roles keep their name; only their description may change.
    """
    role = await get_role(db, role_id)
    name = require_text(data.name, "Role name", ROLE_NAME_MAX_LENGTH)
    description = require_text(data.description, "Role description", ROLE_DESCRIPTION_MAX_LENGTH)

    if name != role.name:
        if role.is_standard:
            raise InvalidOperationError(f"Standard role '{role.name}' cannot be renamed")
        other = await role_repository.get_by_name(db, name)
        if other is not None and other.id != role.id:
            raise DuplicateEntityError(f"Role '{name}' already exists")

    try:
        async with db.begin_nested():
            role.name = name
            role.description = description
            role.updated_at = utcnow()
            return await role_repository.update(db, role)
    except IntegrityError as exc:
        raise DuplicateEntityError(f"Role '{name}' already exists") from exc


async def delete_role(db: AsyncSession, role_id: int) -> None:
    role = await get_role(db, role_id)
    if role.is_standard:
        raise InvalidOperationError(f"Standard role '{role.name}' cannot be deleted")
    holders = await role_repository.count_holders(db, role.id)
    if holders:
        raise InvalidOperationError(
            f"Role '{role.name}' is assigned to {holders} user(s) and cannot be deleted"
        )
    await role_repository.delete(db, role)


async def assign_role_to_user(db: AsyncSession, user_id: int, role_id: int) -> None:
    """Give *role_id* to *user_id*; a no-op when the user already holds it."""
    user = await user_repository.get_by_id(db, user_id)
    role = await role_repository.get_by_id(db, role_id)
    if user is None or role is None:
        raise InvalidOperationError("User or role not found")

    if any(r.id == role.id for r in user.roles):
        return
    user.roles.append(role)
    await user_repository.update(db, user)


async def remove_role_from_user(db: AsyncSession, user_id: int, role_id: int) -> None:
    """Take *role_id* away from *user_id*; silently ignores absent users or roles."""
    user = await user_repository.get_by_id(db, user_id)
    if user is None:
        return
    held = next((r for r in user.roles if r.id == role_id), None)
    if held is None:
        return
    user.roles.remove(held)
    await user_repository.update(db, user)


async def user_has_role(db: AsyncSession, user_id: int, role_name: str) -> bool:
    return await user_repository.has_role(db, user_id, role_name)
