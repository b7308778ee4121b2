"""
Core middleware package.

- Error handling with sensitive data sanitization and pipeline error mapping
- Structured logging with PII and credential masking
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
]
