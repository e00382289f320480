from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models import Comment

_NEWEST_FIRST = (Comment.created_at.desc(), Comment.id.desc())


async def get_by_id(db: AsyncSession, comment_id: int) -> Comment | None:
    return await db.get(Comment, comment_id)


async def get_all(db: AsyncSession) -> list[Comment]:
    result = await db.execute(select(Comment).order_by(*_NEWEST_FIRST))
    return list(result.scalars().all())


async def get_by_article(db: AsyncSession, article_id: int) -> list[Comment]:
    q = select(Comment).where(Comment.article_id == article_id).order_by(*_NEWEST_FIRST)
    result = await db.execute(q)
    return list(result.scalars().all())


async def add(db: AsyncSession, comment: Comment) -> Comment:
    db.add(comment)
    await db.flush()
    return comment


async def update(db: AsyncSession, comment: Comment) -> Comment:
    await db.flush()
    return comment


async def delete(db: AsyncSession, comment: Comment) -> None:
    await db.delete(comment)
    await db.flush()
