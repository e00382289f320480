from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models import Tag, article_tags


async def get_by_id(db: AsyncSession, tag_id: int) -> Tag | None:
    return await db.get(Tag, tag_id)


async def get_by_name(db: AsyncSession, name: str) -> Tag | None:
    """Exact, case-sensitive lookup by name."""
    result = await db.execute(select(Tag).where(Tag.name == name))
    return result.scalar_one_or_none()


async def get_all(db: AsyncSession) -> list[Tag]:
    result = await db.execute(select(Tag).order_by(Tag.name))
    return list(result.scalars().all())


async def add(db: AsyncSession, tag: Tag) -> Tag:
    db.add(tag)
    await db.flush()
    return tag


async def update(db: AsyncSession, tag: Tag) -> Tag:
    await db.flush()
    return tag


async def delete(db: AsyncSession, tag: Tag) -> None:
    # Tag has no mapped back-reference to articles, so unlink explicitly.
    await db.execute(sql_delete(article_tags).where(article_tags.c.tag_id == tag.id))
    await db.delete(tag)
    await db.flush()
