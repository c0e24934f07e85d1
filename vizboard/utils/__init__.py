"""
vizboard Utilities Module

Common utilities for logging, exception handling, and validation.
"""

from vizboard.utils.logger import get_logger, Logger, Timer
from vizboard.utils.exceptions import (
    APIException,
    ValidationError,
    AuthenticationError,
    InvalidTokenError,
    InvalidCredentialsError,
    AuthorizationError,
    ResourceNotFoundError,
    AlreadyExistsError,
    FileTooLargeError,
    InvalidFileTypeError,
    CsvReadError,
    handle_exception,
)

__all__ = [
    # Logging
    "get_logger",
    "Logger",
    "Timer",
    # Base exception
    "APIException",
    # API exceptions
    "ValidationError",
    "AuthenticationError",
    "InvalidTokenError",
    "InvalidCredentialsError",
    "AuthorizationError",
    "ResourceNotFoundError",
    "AlreadyExistsError",
    "FileTooLargeError",
    "InvalidFileTypeError",
    "CsvReadError",
    # Exception handler
    "handle_exception",
]
