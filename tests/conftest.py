"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- Because that connection is shared, a test must commit (or close) any
  session it opens itself before issuing the next HTTP request.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test, the standard roles are
  seeded, and everything is dropped after the test.
- The Redis cache is disabled by setting cache._redis = None; the CacheManager
  handles a None _redis gracefully, so tests exercise the database path.
- bcrypt runs at its minimum cost so registrations stay fast.
"""
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from blog.cache import cache
from blog.config import settings
from blog.database import Base, get_db, install_sqlite_pragmas
from blog.main import app
from blog.services import role_service, user_service

settings.BCRYPT_ROUNDS = 4

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_sqlite_pragmas(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables and the standard roles before each test, drop after."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session_test() as session:
        await role_service.ensure_standard_roles(session)
        await session.commit()
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that call services directly.
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport.

    The client keeps cookies between requests, so after ``register`` or
    ``login`` every later request is made as that user.
    """
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client



class BlogApi:
    """
    Thin helper around the client for the multi-step flows most tests need:
    registering, switching the logged-in user, granting roles and writing
    articles.
    """

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    async def register(self, email: str, password: str = "secret123", first_name: str | None = None) -> dict:
        """Register *email*; the client is then logged in as that user."""
        resp = await self.client.post("/api/v1/auth/register", json={
            "email": email,
            "password": password,
            "first_name": first_name,
        })
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def login(self, email: str, password: str = "secret123") -> dict:
        resp = await self.client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()

    async def logout(self) -> None:
        resp = await self.client.post("/api/v1/auth/logout")
        assert resp.status_code == 204

    async def grant_role(self, email: str, role_name: str) -> None:
        """Give *role_name* to *email* directly in the database."""
        async with async_session_test() as session:
            user = await user_service.get_user_by_email(session, email)
            role = await role_service.get_role_by_name(session, role_name)
            await role_service.assign_role_to_user(session, user.id, role.id)
            await session.commit()

    async def register_with_role(self, email: str, role_name: str, password: str = "secret123") -> dict:
        """Register, grant *role_name*, then log in again so the cookie carries it."""
        await self.register(email, password)
        await self.grant_role(email, role_name)
        return await self.login(email, password)

    async def create_article(self, title: str = "Hello", tags: list[str] | None = None) -> dict:
        resp = await self.client.post("/api/v1/articles", json={
            "title": title,
            "summary": f"Summary of {title}",
            "content": f"Content of {title}",
            "tags": tags or [],
        })
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def comment(self, article_id: int, text: str = "Nice post") -> dict:
        resp = await self.client.post(f"/api/v1/articles/{article_id}/comments", json={"text": text})
        assert resp.status_code == 201, resp.text
        return resp.json()


@pytest_asyncio.fixture
async def api(async_client: AsyncClient) -> BlogApi:
    return BlogApi(async_client)
