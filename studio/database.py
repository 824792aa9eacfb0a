"""
Async database setup with SQLAlchemy and aiosqlite.

SQLite connections are tuned as they are opened: WAL journaling so the
processor can write while the API reads, and enforced foreign keys so
results and feedback cannot outlive their parents.
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from studio.config import DATABASE_URL, ensure_directories
from studio.models import Base

SQLITE_PRAGMAS = (
    ('journal_mode', 'WAL'),
    ('synchronous', 'NORMAL'),
    ('foreign_keys', 'ON'),
    ('busy_timeout', '5000'),
)


def _apply_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    try:
        for name, value in SQLITE_PRAGMAS:
            cursor.execute(f'PRAGMA {name}={value}')
    finally:
        cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine; SQLite URLs get the connection pragmas."""
    new_engine = create_async_engine(url, echo=echo)
    if new_engine.dialect.name == 'sqlite':
        event.listen(new_engine.sync_engine, 'connect', _apply_sqlite_pragmas)
    return new_engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(DATABASE_URL)
async_session_factory = build_session_factory(engine)


async def init_db():
    """Create tables if they don't exist."""
    ensure_directories()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    await engine.dispose()


async def get_db():
    """
    Request-scoped session. Commits when the handler returns, rolls back
    and re-raises if it fails.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
