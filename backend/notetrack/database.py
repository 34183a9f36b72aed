"""
NoteTrack Backend — Database Lifecycle and Session Management
===============================================================

What:  The `Database` object (async engine + session factory), the ORM base
       class, and the per-request session dependency.
How:   A `Database` is constructed explicitly by the application factory and
       stored on `app.state`. Route handlers receive an `AsyncSession` through
       `get_db_session`, which commits on success and rolls back on error.
Who:   The lifespan handler opens and closes it; routes depend on sessions.

Transaction model:
    One session (and one transaction) per request. All writes a request
    performs, including every upsert of a bulk reorder, commit together
    when the handler returns or roll back together when it raises.
"""

import logging
from typing import Any, AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from notetrack.config import Settings, settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models; owns the shared metadata."""
    pass


class Database:
    """
    Owns the async engine and session factory for one store.

    Lifecycle:
        db = Database(url)
        await db.connect()        # probe with retry, optionally create tables
        async with db.session() as session: ...
        await db.close()          # dispose pooled connections

    Args:
        url: Async SQLAlchemy URL (postgresql+asyncpg://, sqlite+aiosqlite://)
        **engine_kwargs: Passed through to create_async_engine
    """

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "Database":
        """Build a Database with pool options from application settings."""
        engine_kwargs: dict = {"echo": config.log_level == "DEBUG"}
        # SQLite drivers use their own pool classes that reject sizing options
        if not config.database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=config.db_pool_size,
                max_overflow=config.db_max_overflow,
                pool_pre_ping=config.db_pool_pre_ping,
                pool_recycle=3600,
            )
        return cls(config.database_url, **engine_kwargs)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @retry(
        retry=retry_if_exception_type((OSError, SQLAlchemyError)),
        stop=stop_after_attempt(settings.db_connect_retries),
        wait=wait_exponential_jitter(
            initial=settings.db_connect_min_wait,
            max=settings.db_connect_max_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def ping(self) -> None:
        """Run SELECT 1; retried with backoff while the server comes up."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_tables(self) -> None:
        """Create any missing tables from the ORM metadata."""
        # Registers the mapped classes with Base.metadata
        from notetrack.models import note, note_order  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def connect(self, create_tables: bool = False) -> None:
        await self.ping()
        logger.info("Connected to database (%s)", self.dialect_name)
        if create_tables:
            await self.create_tables()
            logger.info("Database tables ensured")

    async def close(self) -> None:
        """Dispose the engine, closing every pooled connection."""
        await self.engine.dispose()
        logger.info("Database connection closed")

    def session(self) -> AsyncSession:
        return self.session_factory()


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's Database."""
    return request.app.state.database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the application's Database
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns the connection to the pool)
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
