import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from loguru import logger

T = TypeVar("T")


def _discard_result(task: asyncio.Future) -> None:
    # Retrieve the outcome of an abandoned task so asyncio does not warn about it.
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Abandoned task finished with error: {task.exception()}")


async def with_timeout(awaitable: Awaitable[T], timeout: float, fallback: T) -> T:
    """
    Race ``awaitable`` against a timer and return whichever finishes first.

    When the timer wins, ``fallback`` is returned and the awaitable keeps running in the
    background; its eventual result is dropped for this call. Nothing is cancelled here:
    hard deadlines belong to the HTTP layer. An exception raised by the awaitable before
    the timer fires is propagated.
    """
    task = asyncio.ensure_future(awaitable)
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task in done:
        return task.result()

    task.add_done_callback(_discard_result)
    logger.info(f"Gave up waiting after {timeout}s, using fallback")
    return fallback
