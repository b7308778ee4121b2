"""Input validation utilities."""

import re
from typing import Optional

_HTTP_URL_PATTERN = re.compile(
    r'^https?://'  # http:// or https://
    r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,6}\.?|'  # domain...
    r'localhost|'  # localhost...
    r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # ...or ip
    r'(?::\d+)?'  # optional port
    r'(?:/?|[/?]\S+)$', re.IGNORECASE
)

_S3_URI_PATTERN = re.compile(r'^s3://[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]/\S+$')


def validate_media_location(location: str) -> tuple[bool, Optional[str]]:
    """
    Validate a video location (http(s) URL or s3:// URI).

    Args:
        location: Location to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not location or not location.strip():
        return False, "Video URL is required for analysis"

    location = location.strip()
    if _S3_URI_PATTERN.match(location) or _HTTP_URL_PATTERN.match(location):
        return True, None

    return False, "Invalid video URL format"
