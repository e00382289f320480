"""
Tag service: explicit tag management plus the get-or-create resolution
used when articles are written.

Tag names are unique by exact, case-sensitive match: ``Python`` and
``python`` are two different tags.
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import DuplicateEntityError, NotFoundError
from blog.models import TAG_NAME_MAX_LENGTH, Tag, utcnow
from blog.repositories import tag_repository
from blog.schemas import TagUpdate
from blog.services._helpers import get_or_create, require_text


def clean_tag_names(tag_names: list[str] | None) -> list[str]:
    """
    Trim *tag_names*, dropping blanks and repeats while keeping order.

    Raises ValidationError for a name longer than the column allows.
    """
    cleaned: list[str] = []
    for raw in tag_names or []:
        if not raw or not raw.strip():
            continue
        name = require_text(raw, "Tag name", TAG_NAME_MAX_LENGTH)
        if name not in cleaned:
            cleaned.append(name)
    return cleaned


async def resolve_tags(db: AsyncSession, tag_names: list[str] | None) -> list[Tag]:
    """
    Return Tag instances for each name in *tag_names*, creating any that
    do not exist yet.  Safe against concurrent creators of the same name.
    """
    tags: list[Tag] = []
    for name in clean_tag_names(tag_names):
        tag = await get_or_create(
            db,
            lambda name=name: tag_repository.get_by_name(db, name),
            lambda name=name: Tag(name=name),
        )
        tags.append(tag)
    return tags


async def create_tag(db: AsyncSession, name: str) -> Tag:
    name = require_text(name, "Tag name", TAG_NAME_MAX_LENGTH)
    if await tag_repository.get_by_name(db, name) is not None:
        raise DuplicateEntityError(f"Tag '{name}' already exists")
    try:
        async with db.begin_nested():
            return await tag_repository.add(db, Tag(name=name))
    except IntegrityError as exc:
        raise DuplicateEntityError(f"Tag '{name}' already exists") from exc


async def get_tag(db: AsyncSession, tag_id: int) -> Tag:
    tag = await tag_repository.get_by_id(db, tag_id)
    if tag is None:
        raise NotFoundError("Tag not found")
    return tag


async def get_tag_by_name(db: AsyncSession, name: str) -> Tag:
    tag = await tag_repository.get_by_name(db, (name or "").strip())
    if tag is None:
        raise NotFoundError("Tag not found")
    return tag


async def get_tags(db: AsyncSession) -> list[Tag]:
    return await tag_repository.get_all(db)


async def update_tag(db: AsyncSession, tag_id: int, data: TagUpdate) -> Tag:
    tag = await get_tag(db, tag_id)
    name = require_text(data.name, "Tag name", TAG_NAME_MAX_LENGTH)
    if name != tag.name:
        other = await tag_repository.get_by_name(db, name)
        if other is not None:
            raise DuplicateEntityError(f"Tag '{name}' already exists")
    try:
        async with db.begin_nested():
            tag.name = name
            tag.updated_at = utcnow()
            return await tag_repository.update(db, tag)
    except IntegrityError as exc:
        raise DuplicateEntityError(f"Tag '{name}' already exists") from exc


async def delete_tag(db: AsyncSession, tag_id: int) -> None:
    """Delete *tag_id*, unlinking it from every article that carried it."""
    tag = await get_tag(db, tag_id)
    await tag_repository.delete(db, tag)
