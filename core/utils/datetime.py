"""Datetime utilities for common operations."""

from datetime import datetime, timezone


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def to_unix_millis(dt: datetime) -> int:
    """
    Convert datetime to a Unix timestamp in milliseconds.

    Storage keys and transcription job names embed this value.

    Args:
        dt: Datetime to convert

    Returns:
        Milliseconds since epoch
    """
    return int(dt.timestamp() * 1000)
