"""
Error handling middleware with error sanitization.

Maps pipeline errors and database failures to structured JSON responses
without leaking credentials or PII into messages.
"""

import logging
import re
import traceback
from typing import Any, Callable, Optional

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import (
    AnalysisCancelledError,
    AnalysisError,
    PersistenceError,
    ServiceTimeoutError,
    StorageError,
    TranscriptionJobError,
    TranscriptionTimeoutError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'X-Amz-(?:Signature|Credential|Security-Token)=[^&\s"]+', re.IGNORECASE),
    re.compile(r'\bAKIA[0-9A-Z]{16}\b'),  # AWS access key id
]

# (status code, error code) per pipeline error; first match wins
ANALYSIS_ERROR_RESPONSES: list[tuple[type[AnalysisError], int, str]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "INVALID_ANALYSIS_REQUEST"),
    (StorageError, status.HTTP_502_BAD_GATEWAY, "STORAGE_ERROR"),
    (TranscriptionJobError, status.HTTP_502_BAD_GATEWAY, "TRANSCRIPTION_FAILED"),
    (TranscriptionTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "TRANSCRIPTION_TIMEOUT"),
    (ServiceTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "SERVICE_TIMEOUT"),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE, "DATABASE_ERROR"),
    (AnalysisCancelledError, status.HTTP_409_CONFLICT, "ANALYSIS_CANCELLED"),
]


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to extract details from
        include_details: Whether to include the traceback (only in dev)

    Returns:
        Dictionary with safe error details
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }

    if include_details:
        details["traceback"] = traceback.format_exc()

    return details


def analysis_error_response(exc: AnalysisError) -> tuple[int, str, str, dict[str, Any]]:
    """
    Resolve status code, error code, message and details for a pipeline error.

    Returns:
        Tuple of (status_code, error_code, message, details)
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "ANALYSIS_FAILED"
    for error_type, mapped_status, mapped_code in ANALYSIS_ERROR_RESPONSES:
        if isinstance(exc, error_type):
            status_code, error_code = mapped_status, mapped_code
            break

    details: dict[str, Any] = {"kind": exc.kind}
    if exc.failed_state is not None:
        details["failed_stage"] = exc.failed_state
    if exc.processing_time_seconds is not None:
        details["processing_time_seconds"] = exc.processing_time_seconds

    return status_code, error_code, sanitize_error_message(exc.message), details


def _error_body(
    error_code: str,
    message: str,
    path: str,
    method: str,
    details: Optional[Any] = None,
) -> dict[str, Any]:
    body = {
        "error": {
            "code": error_code,
            "message": message,
            "path": path,
            "method": method,
        }
    }
    if details is not None:
        body["error"]["details"] = details
    return body


class ErrorHandlingMiddleware:
    """
    ASGI middleware turning uncaught exceptions into structured JSON errors.

    Messages are sanitized, and tracebacks are only attached in debug mode.
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            debug: Whether to include detailed error information
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = await self._handle_exception(exc, scope)
            await response(scope, receive, send)

    async def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        """
        Handle different types of exceptions and return appropriate responses.

        Args:
            exc: The exception to handle
            scope: ASGI scope for context

        Returns:
            JSONResponse with error details
        """
        request_path = scope.get("path", "unknown")
        request_method = scope.get("method", "unknown")

        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        error_code = "INTERNAL_SERVER_ERROR"
        message = "An unexpected error occurred"
        details = None

        if isinstance(exc, AnalysisError):
            status_code, error_code, message, details = analysis_error_response(exc)
            log = logger.warning if status_code < 500 else logger.error
            log(
                f"Analysis error: {request_method} {request_path} - "
                f"Status: {status_code}, Kind: {exc.kind}, Message: {message}"
            )

        elif isinstance(exc, StarletteHTTPException):
            status_code = exc.status_code
            error_code = "HTTP_EXCEPTION"
            message = sanitize_error_message(str(exc.detail))
            logger.warning(
                f"HTTP exception: {request_method} {request_path} - "
                f"Status: {status_code}, Message: {message}"
            )

        elif isinstance(exc, RequestValidationError):
            status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
            error_code = "VALIDATION_ERROR"
            message = "Request validation failed"
            details = self._format_validation_errors(exc)
            logger.warning(
                f"Validation error: {request_method} {request_path} - Errors: {details}"
            )

        elif isinstance(exc, IntegrityError):
            status_code = status.HTTP_409_CONFLICT
            error_code = "INTEGRITY_ERROR"
            message = "Database integrity constraint violated"
            if self.debug:
                details = get_safe_error_details(exc, include_details=True)
            logger.error(
                f"Database integrity error: {request_method} {request_path}",
                exc_info=not self.debug
            )

        elif isinstance(exc, OperationalError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            error_code = "DATABASE_ERROR"
            message = "Database service temporarily unavailable"
            logger.error(
                f"Database operational error: {request_method} {request_path}",
                exc_info=True
            )

        elif isinstance(exc, SQLAlchemyError):
            error_code = "DATABASE_ERROR"
            message = "A database error occurred"
            if self.debug:
                details = get_safe_error_details(exc, include_details=True)
            logger.error(
                f"SQLAlchemy error: {request_method} {request_path}",
                exc_info=not self.debug
            )

        elif isinstance(exc, ValueError):
            status_code = status.HTTP_400_BAD_REQUEST
            error_code = "INVALID_INPUT"
            message = sanitize_error_message(str(exc)) or "Invalid input provided"
            logger.warning(f"Value error: {request_method} {request_path} - {message}")

        elif isinstance(exc, TimeoutError):
            status_code = status.HTTP_504_GATEWAY_TIMEOUT
            error_code = "TIMEOUT"
            message = "The request timed out"
            logger.error(f"Timeout error: {request_method} {request_path}")

        else:
            if self.debug:
                details = get_safe_error_details(exc, include_details=True)
            logger.error(
                f"Unhandled exception: {request_method} {request_path} - "
                f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
                exc_info=True
            )

        error_response = _error_body(error_code, message, request_path, request_method, details)

        # Add request ID if available
        if "headers" in scope:
            headers = dict(scope["headers"])
            request_id = headers.get(b"x-request-id")
            if request_id:
                error_response["error"]["request_id"] = request_id.decode()

        return JSONResponse(status_code=status_code, content=error_response)

    def _format_validation_errors(self, exc: RequestValidationError) -> list[dict[str, Any]]:
        return format_validation_errors(exc)


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Format validation errors into a user-friendly structure.

    Simple input values are echoed back unless they look sensitive.
    """
    errors = []
    for error in exc.errors():
        error_dict = {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }

        if "input" in error:
            input_value = error["input"]
            if isinstance(input_value, (str, int, float, bool)):
                input_str = str(input_value)
                if not any(pattern.search(input_str) for pattern in SENSITIVE_PATTERNS):
                    error_dict["input"] = input_value

        errors.append(error_dict)

    return errors


def setup_error_handlers(app):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(AnalysisError)
    async def analysis_exception_handler(request: Request, exc: AnalysisError):
        """Handle pipeline errors raised while serving a request."""
        status_code, error_code, message, details = analysis_error_response(exc)
        logger.warning(
            f"Analysis error: {request.method} {request.url.path} - "
            f"Kind: {exc.kind}, Message: {message}"
        )
        return JSONResponse(
            status_code=status_code,
            content=_error_body(
                error_code, message, str(request.url.path), request.method, details
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                "HTTP_EXCEPTION",
                sanitize_error_message(str(exc.detail)),
                str(request.url.path),
                request.method,
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                str(request.url.path),
                request.method,
                format_validation_errors(exc),
            ),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                "INTERNAL_SERVER_ERROR",
                "An unexpected error occurred",
                str(request.url.path),
                request.method,
            ),
        )
