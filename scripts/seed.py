"""Seed the blog database with the standard roles and demo accounts."""
import argparse
import asyncio
import time

from blog.database import Base, async_session, engine
from blog.exceptions import DuplicateEntityError
from blog.models import ADMIN, MODERATOR, USER
from blog.services import article_service, role_service, user_service

DEMO_ACCOUNTS = [
    # email, password, first name, last name, role
    ("admin@blog.com", "admin123", "Admin", "User", ADMIN),
    ("moderator@blog.com", "moderator123", "Moderator", "User", MODERATOR),
    ("user@blog.com", "user123", "Regular", "User", USER),
]

DEMO_ARTICLES = [
    ("Getting started with FastAPI", "A first tour of async endpoints.", ["python", "fastapi"]),
    ("Async SQLAlchemy in practice", "Sessions, flushes and eager loading.", ["python", "sqlalchemy"]),
    ("Caching article pages with Redis", "Cache-aside for read-heavy blogs.", ["redis", "performance"]),
]


async def seed(reset: bool = False, with_articles: bool = False):
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        roles = {role.name: role for role in await role_service.ensure_standard_roles(session)}
        print(f"  Standard roles: {', '.join(sorted(roles))}")

        for email, password, first_name, last_name, role_name in DEMO_ACCOUNTS:
            try:
                user = await user_service.register_user(
                    session, email, password, first_name, last_name
                )
            except DuplicateEntityError:
                user = await user_service.get_user_by_email(session, email)
                print(f"  {email} already exists")
            await role_service.assign_role_to_user(session, user.id, roles[role_name].id)
            print(f"  {email} -> {role_name}")

        if with_articles:
            author = await user_service.get_user_by_email(session, "user@blog.com")
            for title, summary, tags in DEMO_ARTICLES:
                await article_service.create_article(
                    session, title, summary, f"{summary}\n\n" * 10, author.id, tags
                )
            print(f"  Created {len(DEMO_ARTICLES)} demo articles")

        await session.commit()

    await engine.dispose()
    print(f"\nSeeding complete in {time.perf_counter() - start:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first")
    parser.add_argument("--with-articles", action="store_true", help="Add a few demo articles")
    args = parser.parse_args()
    asyncio.run(seed(reset=args.reset, with_articles=args.with_articles))


if __name__ == "__main__":
    main()
