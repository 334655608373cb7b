# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

Two access paths share one session contract:

- The API process initializes a single module-level engine at startup
  (init_database / close_database) and hands out sessions through
  get_session().
- Dramatiq worker threads each own a persistent event loop, so each thread
  gets its own engine via get_worker_session(). Engines are bound to the
  loop they were created in and must not be shared across threads.

Sessions commit on success and roll back on any exception.

Example:
    # Initialize at application startup
    await init_database(settings)

    # Use in request handlers
    async with get_session() as session:
        result = await session.execute(select(AdaptiveAction))
"""

import threading
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from src.core.config.settings import Settings

# Module-level state for the API process connection pool
_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

# Per-thread state for worker processes
_thread_local = threading.local()


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


def _create_engine(settings: "Settings", pool_size: int, max_overflow: int) -> AsyncEngine:
    return create_async_engine(
        settings.database.url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=1800,
        echo=False,
    )


def _create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def _session_scope(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseError("Database operation failed", e) from e
        except Exception:
            await session.rollback()
            raise


async def init_database(settings: "Settings") -> None:
    """Initialize the database connection pool for the API process.

    Args:
        settings: Application settings containing database configuration.

    Raises:
        DatabaseError: If connection pool creation fails.
    """
    global _engine, _sessionmaker

    try:
        _engine = _create_engine(
            settings,
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
        )
        _sessionmaker = _create_sessionmaker(_engine)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e


async def close_database() -> None:
    """Close the API process connection pool."""
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the API process sessionmaker.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Get an async session from the API process pool.

    The session is committed on success and rolled back on exception.

    Yields:
        AsyncSession for database operations.

    Raises:
        DatabaseError: If the database has not been initialized or
            if a database operation fails.
    """
    async with _session_scope(get_sessionmaker()) as session:
        yield session


async def check_database_connection() -> bool:
    """Check if the database is reachable.

    Returns:
        True if the database is reachable, False otherwise.
    """
    if _engine is None:
        return False

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError):
        return False


def get_worker_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the sessionmaker owned by the current worker thread.

    Dramatiq runs several threads per process and each thread keeps its own
    event loop (see src.infrastructure.background.tasks.base.run_async).
    SQLAlchemy async engines are bound to the loop they were created in,
    so every thread lazily builds its own small pool.

    Returns:
        Thread-local async sessionmaker.
    """
    sessionmaker = getattr(_thread_local, "sessionmaker", None)

    if sessionmaker is None:
        from src.core.config import get_settings

        settings = get_settings()
        engine = _create_engine(
            settings,
            pool_size=settings.database.worker_pool_size,
            max_overflow=0,
        )
        sessionmaker = _create_sessionmaker(engine)
        _thread_local.engine = engine
        _thread_local.sessionmaker = sessionmaker

    return sessionmaker


@asynccontextmanager
async def get_worker_session() -> AsyncIterator[AsyncSession]:
    """Get an async session bound to the current worker thread's loop.

    Yields:
        AsyncSession for database operations.
    """
    async with _session_scope(get_worker_sessionmaker()) as session:
        yield session


def _clear_thread_db_connections() -> None:
    """Forget the current thread's engine.

    Called by run_async() when a new event loop is created for a thread, so
    the next session is built against the new loop. Safe to call when the
    thread has no engine yet.
    """
    _thread_local.engine = None
    _thread_local.sessionmaker = None
