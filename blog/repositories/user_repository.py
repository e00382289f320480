from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models import Article, Comment, Role, User


async def get_by_id(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def email_exists(db: AsyncSession, email: str) -> bool:
    return bool(await db.scalar(select(exists().where(User.email == email))))


async def get_all(db: AsyncSession) -> list[User]:
    q = select(User).order_by(User.registered_at.desc(), User.id.desc())
    result = await db.execute(q)
    return list(result.scalars().all())


async def add(db: AsyncSession, user: User) -> User:
    db.add(user)
    await db.flush()
    return user


async def update(db: AsyncSession, user: User) -> User:
    await db.flush()
    return user


async def delete(db: AsyncSession, user: User) -> None:
    await db.delete(user)
    await db.flush()


async def count_authored(db: AsyncSession, user_id: int) -> int:
    """Return how many articles and comments reference *user_id* as author."""
    articles = await db.scalar(
        select(func.count()).select_from(Article).where(Article.author_id == user_id)
    )
    comments = await db.scalar(
        select(func.count()).select_from(Comment).where(Comment.author_id == user_id)
    )
    return (articles or 0) + (comments or 0)


async def has_role(db: AsyncSession, user_id: int, role_name: str) -> bool:
    q = select(exists().where(User.id == user_id, User.roles.any(Role.name == role_name)))
    return bool(await db.scalar(q))
