from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from blog.config import settings


def install_sqlite_pragmas(engine) -> None:
    """
    Make a SQLite *engine* behave like the production database for the
    constraints the services rely on.

    - ``PRAGMA foreign_keys=ON`` per connection, otherwise SQLite ignores
      ON DELETE CASCADE / RESTRICT.
    - The driver's implicit BEGIN handling is disabled and SQLAlchemy
      emits its own, so SAVEPOINTs (used by get-or-create) nest inside
      the outer transaction.

    No-op for other dialects.  Must be called once per engine
    (production engine in ``database.py``, test engine in ``conftest.py``).
    """
    sync_engine = engine.sync_engine
    if sync_engine.dialect.name != "sqlite":
        return

    @event.listens_for(sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

install_sqlite_pragmas(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
