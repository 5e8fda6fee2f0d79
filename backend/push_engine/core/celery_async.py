"""
Run coroutines from synchronous Celery task bodies on one loop per worker process.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Awaitable, TypeVar

import nest_asyncio
from loguru import logger

T = TypeVar("T")

_loop_lock = threading.Lock()
_worker_loop: asyncio.AbstractEventLoop | None = None


def get_or_create_loop() -> asyncio.AbstractEventLoop:
    """
    Return the event loop owned by the current worker process, creating it if needed.

    Reusing the loop keeps pooled asyncpg connections bound to the loop that
    created them.
    """
    global _worker_loop

    with _loop_lock:
        loop = _worker_loop
        if loop is None or loop.is_closed():
            loop = asyncio.new_event_loop()
            nest_asyncio.apply(loop)
            _worker_loop = loop
            logger.debug("Created new event loop for Celery worker")

    asyncio.set_event_loop(loop)
    return loop


def reset_loop() -> None:
    """Close and forget the worker loop; the next task gets a fresh one."""
    global _worker_loop

    with _loop_lock:
        loop = _worker_loop
        _worker_loop = None

    if loop is not None and not loop.is_closed():
        loop.close()


def run_async_task(coro: Awaitable[T]) -> T:
    """
    Execute an async coroutine inside the shared Celery event loop.

    A "different loop" RuntimeError means the cached loop went stale; it is
    dropped so the next task starts on a fresh loop, and the error is re-raised.
    """
    if not asyncio.iscoroutine(coro):
        raise TypeError("run_async_task expects an awaitable/coroutine object")

    loop = get_or_create_loop()
    try:
        return loop.run_until_complete(coro)
    except RuntimeError as exc:
        if "different loop" not in str(exc):
            raise
        logger.warning(f"Event loop conflict detected, recreating loop: {exc}")
        reset_loop()
        raise
