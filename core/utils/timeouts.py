"""Per-call timeout helper for external service calls."""

import asyncio
import logging
from typing import Awaitable, TypeVar

from core.exceptions import ServiceTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_timeout(
    awaitable: Awaitable[T],
    timeout_seconds: float,
    operation: str,
) -> T:
    """
    Await an external call, converting a timeout into ``ServiceTimeoutError``.

    Args:
        awaitable: Coroutine performing the call
        timeout_seconds: Upper bound for the call
        operation: Short name of the operation, used in the error message

    Returns:
        Result of the awaitable

    Raises:
        ServiceTimeoutError: The call outlived ``timeout_seconds``
    """
    deadline = asyncio.timeout(timeout_seconds)
    try:
        async with deadline:
            return await awaitable
    except TimeoutError as exc:
        # A TimeoutError raised by the call itself is not ours to relabel
        if not deadline.expired():
            raise
        logger.error(f"{operation} timed out after {timeout_seconds}s")
        raise ServiceTimeoutError(
            f"{operation} timed out after {timeout_seconds:g}s",
            operation=operation,
            timeout_seconds=timeout_seconds,
        ) from exc
