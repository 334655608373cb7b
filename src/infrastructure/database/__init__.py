# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

Example:
    from src.infrastructure.database import get_session

    async with get_session() as session:
        result = await session.execute(select(AdaptiveAction))
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    _clear_thread_db_connections,
    check_database_connection,
    close_database,
    get_session,
    get_sessionmaker,
    get_worker_session,
    get_worker_sessionmaker,
    init_database,
)

__all__ = [
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "get_session",
    "get_sessionmaker",
    "init_database",
    # Worker thread-local connections
    "get_worker_session",
    "get_worker_sessionmaker",
    "_clear_thread_db_connections",
]
