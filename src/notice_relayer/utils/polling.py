"""
Polling utility for waiting on gateway chain state.

Reads a piece of state at a fixed interval until a predicate holds, a retry
budget runs out, or an optional wall-clock deadline passes.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..models import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def poll_until(
    read: Callable[[], Awaitable[T]],
    satisfied: Callable[[T], bool],
    policy: RetryPolicy,
    on_exhausted: Callable[[T], Exception],
    on_wait: Callable[[T, int], None] | None = None,
) -> T:
    """
    Poll ``read`` until ``satisfied`` accepts its result.

    The first read happens immediately; each of the ``policy.max_retries``
    re-reads is preceded by a sleep of ``policy.interval`` seconds. Errors
    raised by ``read`` propagate unchanged. Cancelling the calling task
    interrupts the sleep.

    Args:
        read: Coroutine function returning the current state
        satisfied: Predicate deciding whether polling is done
        policy: Retry budget, interval and optional deadline
        on_exhausted: Builds the exception raised when the budget runs out
        on_wait: Called with the last value and remaining retries before each sleep

    Returns:
        The first value accepted by ``satisfied``

    Raises:
        Exception: Whatever ``on_exhausted`` returns, once retries or time run out
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + policy.deadline if policy.deadline is not None else None
    retries = policy.max_retries

    while True:
        value = await read()
        if satisfied(value):
            return value

        if retries <= 0:
            raise on_exhausted(value)

        if deadline is not None and loop.time() + policy.interval > deadline:
            logger.warning(f"Polling deadline of {policy.deadline}s reached with {retries} retries left")
            raise on_exhausted(value)

        if on_wait:
            on_wait(value, retries)

        retries -= 1
        await asyncio.sleep(policy.interval)
