"""Database engine, session factory and request-scoped sessions."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config import settings


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN on SQLite so SAVEPOINTs work.

    The import executor isolates every row in a nested transaction; pysqlite's
    implicit transaction handling would otherwise swallow the SAVEPOINT.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine(url: str | None = None) -> AsyncEngine:
    """Create the async database engine."""
    url = url or settings.database_url
    engine_kwargs = {
        "echo": settings.app_debug,
        "future": True,
    }

    if url.startswith("sqlite"):
        # Single connection shared by every session (in-memory dev/test databases)
        from sqlalchemy.pool import StaticPool

        engine_kwargs["poolclass"] = StaticPool
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    elif settings.is_development:
        engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs["pool_size"] = settings.database_pool_size
        engine_kwargs["max_overflow"] = settings.database_max_overflow
        engine_kwargs["pool_pre_ping"] = True

    new_engine = create_async_engine(url, **engine_kwargs)
    if url.startswith("sqlite"):
        enable_sqlite_savepoints(new_engine)
    return new_engine


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory bound to an engine."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Global engine instance
engine = create_engine()

# Session factory
async_session_factory = create_session_factory(engine)


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session that commits on success and rolls back on error (API and CLI)."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency wrapping get_db_context."""
    async with get_db_context() as session:
        yield session


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
