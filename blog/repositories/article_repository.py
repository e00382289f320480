from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models import Article, Comment, Tag

# Newest first; id breaks ties between rows stamped in the same instant.
_NEWEST_FIRST = (Article.created_at.desc(), Article.id.desc())


async def get_by_id(db: AsyncSession, article_id: int) -> Article | None:
    return await db.get(Article, article_id)


async def get_all(db: AsyncSession) -> list[Article]:
    result = await db.execute(select(Article).order_by(*_NEWEST_FIRST))
    return list(result.scalars().all())


async def get_by_author(db: AsyncSession, author_id: int) -> list[Article]:
    q = select(Article).where(Article.author_id == author_id).order_by(*_NEWEST_FIRST)
    result = await db.execute(q)
    return list(result.scalars().all())


async def get_by_tag(db: AsyncSession, tag_name: str) -> list[Article]:
    q = (
        select(Article)
        .where(Article.tags.any(Tag.name == tag_name))
        .order_by(*_NEWEST_FIRST)
    )
    result = await db.execute(q)
    return list(result.scalars().all())


async def get_by_author_and_tag(db: AsyncSession, author_id: int, tag_name: str) -> list[Article]:
    q = (
        select(Article)
        .where(Article.author_id == author_id, Article.tags.any(Tag.name == tag_name))
        .order_by(*_NEWEST_FIRST)
    )
    result = await db.execute(q)
    return list(result.scalars().all())


async def add(db: AsyncSession, article: Article) -> Article:
    db.add(article)
    await db.flush()
    return article


async def update(db: AsyncSession, article: Article) -> Article:
    await db.flush()
    return article


async def delete(db: AsyncSession, article: Article) -> None:
    """
    Delete *article* together with its comments.

    The ``comments.article_id`` foreign key also cascades at the database
    level; the explicit DELETE keeps the behaviour identical on engines
    where foreign keys are not enforced.  Tag links are removed by the
    ORM through the ``Article.tags`` secondary mapping.
    """
    await db.execute(sql_delete(Comment).where(Comment.article_id == article.id))
    await db.delete(article)
    await db.flush()
