"""Database engine and session factory for the proposal store."""
from typing import AsyncGenerator

import sqlalchemy
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    """Declarative base for the proposal, revision, history and call tables."""
    pass


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    비동기 엔진 생성.

    SQLite 연결마다 외래 키 검사를 켜고, 쓰기 경합 시 즉시 실패하지 않도록
    busy timeout을 둡니다. 다른 DB는 커넥션 풀 설정을 사용합니다.
    """
    if not _is_sqlite(database_url):
        return create_async_engine(
            database_url,
            echo=echo,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )

    sqlite_engine = create_async_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    # PRAGMA foreign_keys is per connection, so it has to run on every connect
    @event.listens_for(sqlite_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = build_engine(settings.database_url, echo=settings.debug)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=True,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    ProposalService commits its own units of work; anything left pending
    when the request ends is committed here, and an error rolls it back.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables that do not exist yet (alembic owns schema changes)."""
    import app.db.models  # noqa: F401

    async with engine.begin() as conn:
        if _is_sqlite(str(engine.url)) and ":memory:" not in str(engine.url):
            await conn.execute(sqlalchemy.text("PRAGMA journal_mode=WAL"))
            await conn.execute(sqlalchemy.text("PRAGMA synchronous=NORMAL"))
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine's connection pool."""
    await engine.dispose()
