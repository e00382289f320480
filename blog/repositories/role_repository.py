from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models import Role, user_roles


async def get_by_id(db: AsyncSession, role_id: int) -> Role | None:
    return await db.get(Role, role_id)


async def get_by_name(db: AsyncSession, name: str) -> Role | None:
    result = await db.execute(select(Role).where(Role.name == name))
    return result.scalar_one_or_none()


async def get_all(db: AsyncSession) -> list[Role]:
    result = await db.execute(select(Role).order_by(Role.name))
    return list(result.scalars().all())


async def add(db: AsyncSession, role: Role) -> Role:
    db.add(role)
    await db.flush()
    return role


async def update(db: AsyncSession, role: Role) -> Role:
    await db.flush()
    return role


async def delete(db: AsyncSession, role: Role) -> None:
    await db.delete(role)
    await db.flush()


async def count_holders(db: AsyncSession, role_id: int) -> int:
    q = select(func.count()).select_from(user_roles).where(user_roles.c.role_id == role_id)
    return (await db.scalar(q)) or 0

