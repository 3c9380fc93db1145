"""
Async runner for dramatiq tasks.

Provides a thread-safe way to run async code in dramatiq actors, and a
helper that gives each task a short-lived RewardEngine.
"""

import asyncio
import threading
from collections.abc import Awaitable, Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

from loguru import logger

from app.config.settings import Settings, settings
from app.services.rewards.engine import RewardEngine, build_engine

T = TypeVar("T")

# Thread-local storage for event loops
_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """
    Get or create event loop for current thread.

    Creates a new event loop for each thread and reuses it.
    This prevents "Future attached to a different loop" errors.
    """
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        logger.debug(f"Created new event loop for thread {threading.current_thread().name}")
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in the thread's event loop.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine
    """
    loop = get_event_loop()
    try:
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.exception(f"Error running async coroutine: {e}")
        raise


def async_actor(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """
    Decorator to wrap async function for use in dramatiq actor.

    Usage:
        @dramatiq.actor
        @async_actor
        async def my_task():
            await some_async_operation()
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        return run_async(func(*args, **kwargs))
    return wrapper


async def with_engine(
    operation: Callable[[RewardEngine], Awaitable[T]],
    config: Settings | None = None,
) -> T:
    """
    Run an operation against a worker-scoped RewardEngine.

    The engine uses a non-pooled database engine bound to the current
    loop and is closed afterwards.

    Args:
        operation: Coroutine function receiving the engine
        config: Settings (global settings if omitted)

    Returns:
        Result of the operation
    """
    engine = build_engine(config or settings, for_worker=True)
    try:
        return await operation(engine)
    finally:
        await engine.close()
