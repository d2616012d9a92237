# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base utilities for Dramatiq tasks.

Thread-Local Event Loop Management:
    Dramatiq workers use multiple threads (--threads N) to process tasks
    concurrently. SQLAlchemy async engines and asyncpg connections are
    bound to the event loop that created them and cannot be shared
    across loops.

    Each worker thread therefore keeps one persistent event loop and
    one engine/sessionmaker bound to it, reused for every task that
    thread runs.
"""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Coroutine, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from classroom_hub.core.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Thread-local storage for event loops and sessionmakers
_thread_local = threading.local()


def _get_thread_event_loop() -> asyncio.AbstractEventLoop:
    """Get or create a persistent event loop for the current thread.

    When a new loop is created, the thread's cached sessionmaker is
    dropped so no connection outlives the loop it was opened on.
    """
    loop = getattr(_thread_local, "event_loop", None)

    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.event_loop = loop
        _thread_local.sessionmaker = None

        logger.debug(
            "Created new event loop for thread %s",
            threading.current_thread().name,
        )

    return loop


def _get_thread_sessionmaker() -> async_sessionmaker[AsyncSession]:
    sessionmaker = getattr(_thread_local, "sessionmaker", None)
    if sessionmaker is None:
        settings = get_settings()
        engine = create_async_engine(settings.db.url, pool_pre_ping=not settings.db.is_sqlite)
        sessionmaker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        _thread_local.sessionmaker = sessionmaker
    return sessionmaker


@asynccontextmanager
async def worker_session() -> AsyncIterator[AsyncSession]:
    """Get a database session bound to the current worker thread's loop.

    Yields:
        AsyncSession, rolled back if the block raises.
    """
    async with _get_thread_sessionmaker()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run async coroutine in sync Dramatiq worker context.

    Args:
        coro: Coroutine to run.

    Returns:
        Result of coroutine.

    Example:
        @dramatiq.actor
        def my_task(resource_id: str):
            async def _process():
                async with worker_session() as session:
                    ...
            return run_async(_process())
    """
    loop = _get_thread_event_loop()
    return loop.run_until_complete(coro)
