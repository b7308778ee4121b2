"""Shared utility functions for agents."""

import asyncio
import json
import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from core.utils.formatting import truncate_text

logger = logging.getLogger(__name__)

T = TypeVar('T')


def parse_json_response(response: Optional[str]) -> Optional[Any]:
    """Safely parse JSON from agent response.

    Accepts a bare JSON document, a document wrapped in a markdown code
    block, or a document surrounded by stray prose.

    Args:
        response: Agent response text that may contain JSON

    Returns:
        Parsed JSON value or None if parsing fails
    """
    if not response:
        logger.warning("Response is empty")
        return None

    # Try to extract JSON from markdown code blocks
    for fence in ("```json", "```"):
        if fence in response:
            start = response.find(fence) + len(fence)
            end = response.find("```", start)
            if end == -1:
                end = len(response)
            try:
                return json.loads(response[start:end].strip())
            except json.JSONDecodeError as e:
                logger.warning(f"Failed to parse JSON from code block: {e}")
                break

    # Try to parse the entire response
    try:
        return json.loads(response)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost object or array in the text
    starts = [i for i in (response.find("{"), response.find("[")) if i != -1]
    if starts:
        start = min(starts)
        closing = "}" if response[start] == "{" else "]"
        end = response.rfind(closing)
        if end > start:
            try:
                return json.loads(response[start:end + 1])
            except json.JSONDecodeError:
                pass

    logger.warning(f"Response is not valid JSON: {truncate_text(response, 200)}")
    return None


def mean(values: list[float], default: float) -> float:
    """Arithmetic mean, or ``default`` for an empty list."""
    if not values:
        return default
    return sum(values) / len(values)


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
):
    """Decorator to retry async functions with exponential backoff.

    Only exceptions listed in ``retry_on`` trigger a retry; anything else
    propagates immediately.

    Args:
        max_retries: Maximum number of retries
        initial_delay: Initial delay in seconds
        backoff_factor: Multiplier for delay after each retry
        retry_on: Exception types considered transient
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            delay = initial_delay
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    last_exception = e
                    if attempt < max_retries:
                        logger.warning(
                            f"Attempt {attempt + 1} failed: {e}. "
                            f"Retrying in {delay}s..."
                        )
                        await asyncio.sleep(delay)
                        delay *= backoff_factor
                    else:
                        logger.error(f"All {max_retries + 1} attempts failed")

            raise last_exception

        return wrapper
    return decorator
