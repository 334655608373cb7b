# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base utilities for Dramatiq tasks.

Dramatiq actors are synchronous and run on several threads per worker
process. SQLAlchemy async engines and asyncpg connections are bound to the
event loop that created them, so each worker thread keeps one persistent
event loop and reuses it for every job it runs. When a thread has to
create a new loop its cached database engine is dropped as well.
"""

import asyncio
import logging
import threading
from typing import Any, Coroutine, TypeVar

from src.infrastructure.database.connection import _clear_thread_db_connections

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Thread-local storage for event loops
_thread_local = threading.local()


def _get_thread_event_loop() -> asyncio.AbstractEventLoop:
    """Get or create the persistent event loop for the current thread."""
    loop = getattr(_thread_local, "event_loop", None)

    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.event_loop = loop

        _clear_thread_db_connections()

        logger.debug(
            "Created new event loop for thread %s",
            threading.current_thread().name,
        )

    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion on the current thread's event loop.

    Args:
        coro: Coroutine to run.

    Returns:
        Result of coroutine.

    Example:
        @dramatiq.actor
        def my_task(user_id: str):
            async def _process():
                async with get_worker_session() as session:
                    ...
            return run_async(_process())
    """
    loop = _get_thread_event_loop()
    return loop.run_until_complete(coro)
