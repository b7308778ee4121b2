"""
Structured logging middleware with PII and credential masking.

Request/response logging for the analysis API. Candidate ids and video URLs
are logged, but signed URL parameters, credentials and contact details never
are.
"""

import json
import logging
import re
import time
import traceback
import uuid
from typing import Any, Callable
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


# Sensitive field patterns to mask in logs
SENSITIVE_FIELD_PATTERNS = [
    re.compile(r'password', re.IGNORECASE),
    re.compile(r'token', re.IGNORECASE),
    re.compile(r'api[_-]?key', re.IGNORECASE),
    re.compile(r'secret', re.IGNORECASE),
    re.compile(r'authorization', re.IGNORECASE),
    re.compile(r'cookie', re.IGNORECASE),
    re.compile(r'session', re.IGNORECASE),
    re.compile(r'access[_-]?key', re.IGNORECASE),
    re.compile(r'signature', re.IGNORECASE),
    re.compile(r'credential', re.IGNORECASE),
]

# PII patterns to detect and mask
PII_PATTERNS = [
    (re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'), '[EMAIL]'),
    (re.compile(r'\b\d{3}[-.]?\d{3}[-.]?\d{4}\b'), '[PHONE]'),
    (re.compile(r'\bAKIA[0-9A-Z]{16}\b'), '[AWS_KEY]'),
]

# Query parameters of presigned URLs
SIGNED_URL_PARAMS = re.compile(r'^(x-amz-|signature$|awsaccesskeyid$|expires$|token$)', re.IGNORECASE)


def is_sensitive_field(field_name: str) -> bool:
    """Check if a field name indicates sensitive data."""
    return any(pattern.search(field_name) for pattern in SENSITIVE_FIELD_PATTERNS)


def strip_signed_params(url: str) -> str:
    """
    Drop presigned-URL query parameters from a URL.

    Args:
        url: URL that may carry a signature

    Returns:
        URL with signing parameters removed, other parameters kept
    """
    parsed = urlparse(url)
    if not parsed.query:
        return url
    kept = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if not SIGNED_URL_PARAMS.match(k)]
    return urlunparse(parsed._replace(query=urlencode(kept)))


def mask_string(value: str) -> str:
    masked = value
    if masked.startswith(("http://", "https://")):
        masked = strip_signed_params(masked)
    for pattern, replacement in PII_PATTERNS:
        masked = pattern.sub(replacement, masked)
    return masked


def mask_sensitive_data(data: Any, depth: int = 0, max_depth: int = 10) -> Any:
    """
    Recursively mask sensitive data in dictionaries and lists.

    Args:
        data: Data structure to mask
        depth: Current recursion depth
        max_depth: Maximum recursion depth

    Returns:
        Data structure with sensitive values masked
    """
    if depth > max_depth:
        return "[MAX_DEPTH_EXCEEDED]"

    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if is_sensitive_field(str(key))
            else mask_sensitive_data(value, depth + 1, max_depth)
            for key, value in data.items()
        }

    if isinstance(data, list):
        return [mask_sensitive_data(item, depth + 1, max_depth) for item in data]

    if isinstance(data, str):
        return mask_string(data)

    return data


def mask_headers(headers: dict) -> dict:
    """
    Mask sensitive headers, keeping the authorization scheme visible.

    Args:
        headers: Dictionary of HTTP headers

    Returns:
        Headers with sensitive values masked
    """
    masked = {}
    for key, value in headers.items():
        key_lower = key.lower()
        if not is_sensitive_field(key_lower):
            masked[key] = value
        elif key_lower == 'authorization' and isinstance(value, str) and ' ' in value:
            masked[key] = f"{value.split(' ', 1)[0]} [REDACTED]"
        else:
            masked[key] = "[REDACTED]"
    return masked


def should_log_request(path: str) -> bool:
    """Health probes are not logged."""
    skip_paths = ['/health', '/ready']
    return not any(path.startswith(skip) for skip in skip_paths)


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request, with the last octet masked.

    Args:
        request: FastAPI request object

    Returns:
        Masked client IP address
    """
    forwarded_for = request.headers.get('x-forwarded-for')
    if forwarded_for:
        ip = forwarded_for.split(',')[0].strip()
    else:
        ip = request.client.host if request.client else 'unknown'

    parts = ip.split('.')
    if len(parts) == 4:
        return f"{parts[0]}.{parts[1]}.{parts[2]}.xxx"
    return 'unknown'


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one JSON line when a request starts and one when it completes.

    Every request gets an ``x-request-id`` (taken from the request or
    generated) which is echoed on the response.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        log_response_body: bool = False,
        max_body_size: int = 1024,
    ):
        """
        Initialize logging middleware.

        Args:
            app: The ASGI application
            log_request_body: Whether to log request bodies (masked)
            log_response_body: Whether to log response bodies (masked)
            max_body_size: Maximum body size to log (bytes)
        """
        super().__init__(app)
        self.log_request_body = log_request_body
        self.log_response_body = log_response_body
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get('x-request-id', str(uuid.uuid4()))
        request.state.request_id = request_id

        if not should_log_request(request.url.path):
            response = await call_next(request)
            response.headers['x-request-id'] = request_id
            return response

        start_time = time.time()

        request_log = {
            'event': 'request_started',
            'request_id': request_id,
            'method': request.method,
            'path': request.url.path,
            'query_params': mask_sensitive_data(dict(request.query_params)),
            'client_ip': get_client_ip(request),
            'user_agent': request.headers.get('user-agent', 'unknown'),
            'headers': mask_headers(dict(request.headers)),
        }

        if self.log_request_body and request.method in ['POST', 'PUT', 'PATCH']:
            body = await self._get_request_body(request)
            if body:
                request_log['body'] = mask_sensitive_data(body)

        logger.info(json.dumps(request_log))

        response = None
        error_details = None

        try:
            response = await call_next(request)
        except Exception as exc:
            error_details = {
                'type': type(exc).__name__,
                'message': mask_string(str(exc)),
            }
            logger.error(
                f"Request processing error: {request.method} {request.url.path}",
                exc_info=True,
                extra={'request_id': request_id},
            )
            raise
        finally:
            duration = time.time() - start_time

            response_log = {
                'event': 'request_completed',
                'request_id': request_id,
                'method': request.method,
                'path': request.url.path,
                'duration_ms': round(duration * 1000, 2),
                'status_code': response.status_code if response else 500,
            }
            if error_details:
                response_log['error'] = error_details

            if response is None or response.status_code >= 500:
                logger.error(json.dumps(response_log))
            elif response.status_code >= 400:
                logger.warning(json.dumps(response_log))
            else:
                logger.info(json.dumps(response_log))

            if response:
                response.headers['x-request-id'] = request_id

        return response

    async def _get_request_body(self, request: Request) -> Any:
        """
        Safely extract a JSON request body for logging.

        Returns:
            Parsed body, a truncation marker, or None
        """
        content_type = request.headers.get('content-type', '')
        if 'application/json' not in content_type:
            return {'_content_type': content_type} if content_type else None

        body_bytes = await request.body()
        if len(body_bytes) > self.max_body_size:
            return {'_truncated': True, '_size': len(body_bytes)}

        try:
            return json.loads(body_bytes.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug(f"Could not parse request body: {e}")
            return None


class StructuredFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    EXTRA_FIELDS = ('request_id', 'analysis_id', 'stage')

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data)


def setup_logging(log_level: str = "INFO", json_logs: bool = True):
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Whether to format logs as JSON
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    if json_logs:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    for noisy in ('uvicorn.access', 'sqlalchemy.engine', 'botocore', 'aiobotocore', 'httpx'):
        logging.getLogger(noisy).setLevel(logging.WARNING)
