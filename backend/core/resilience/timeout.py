"""
Deadline wrapper for awaitables.

`with_timeout` cancels the slow operation when the deadline passes. The
request it was performing may still have reached the remote side, so callers
must treat a timeout as "outcome unknown".
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from backend.core.errors import OperationTimeoutError

T = TypeVar("T")


async def with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout: float,
    message: str = "Operation timed out",
) -> T:
    """
    Await `operation()` for at most `timeout` seconds.

    Args:
        operation: Zero-argument callable returning an awaitable
        timeout: Deadline in seconds
        message: Error message used when the deadline passes

    Returns:
        The operation's result

    Raises:
        OperationTimeoutError: If the deadline passes first
    """
    try:
        return await asyncio.wait_for(operation(), timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning(f"⏱️ {message} (>{timeout:.1f}s)")
        raise OperationTimeoutError(message) from e
