"""Centralized error handling module."""

from enum import Enum
from typing import Any, Callable, Dict, Optional

from xeet.utils.logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Categories of errors for better handling."""

    NETWORK = "network"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


## Custom Exceptions


class XeetError(Exception):
    """Base exception for all xeet errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "An error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise XeetError with optional message and details."""
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error details to a dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Network Errors


class NetworkError(XeetError):
    """Base exception for network-related errors."""

    category = ErrorCategory.NETWORK
    user_message = "A network error occurred"


class MediaUploadFailed(NetworkError):
    """Image upload failed; the message itself was never sent."""

    user_message = "Failed to upload image"


class ApiError(NetworkError):
    """Non-success response from the message or identity endpoints."""

    user_message = "The API rejected the request"

    def __init__(
        self,
        status: int,
        body: str = "",
        message: str | None = None,
        details: Dict[str, Any] | None = None,
    ):
        self.status = status
        self.body = body
        details = {"status": status, "body": body, **(details or {})}
        super().__init__(message or f"API error {status}: {body}", details)


class NetworkTimeoutError(NetworkError):
    """Exception for network timeout errors."""

    user_message = "The request timed out"


class RateLimitCancelled(NetworkError):
    """Waiting for a rate-limit permit was cancelled."""

    user_message = "Rate limit wait was cancelled"


## Authentication Errors


class AuthenticationError(XeetError):
    """Base exception for authentication-related errors."""

    category = ErrorCategory.AUTHENTICATION
    user_message = "An authentication error occurred"


class MissingCredentialsError(AuthenticationError):
    """No access token has been saved yet."""

    user_message = "Not authenticated - run 'xeet auth' first"


## Validation Errors


class ValidationError(XeetError):
    """Rejected composer input.

    Empty submits and over-length pastes are dropped silently by the composer
    rather than raised, so nothing in the posting path surfaces this type.
    """

    category = ErrorCategory.VALIDATION
    user_message = "Invalid input"


## File System Errors


class FileSystemError(XeetError):
    """Base exception for file system-related errors."""

    category = ErrorCategory.FILE_SYSTEM
    user_message = "A file system error occurred"


class CredentialStoreError(FileSystemError):
    """Credentials could not be written to disk."""

    user_message = "Failed to save credentials"


## Configuration Errors


class ConfigurationError(XeetError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class MissingConfigError(ConfigurationError):
    """Exception for missing configuration settings."""

    user_message = "Missing configuration settings"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


class CorruptConfigError(ConfigurationError):
    """Stored credentials could not be decrypted or parsed."""

    user_message = "Stored credentials are corrupted - run 'xeet auth' again"


## Error Handler


class ErrorHandler:
    """Centralized error handling and logging."""

    @staticmethod
    def handle(
        error: Exception, context: str = "", log_traceback: bool = True
    ) -> Dict[str, Any]:
        """Handle errors with logging and user-friendly message."""
        if isinstance(error, XeetError):
            _get_logger().error(f"{context}: {error.message}", extra=error.details)
            if log_traceback:
                _get_logger().exception(error)
            return error.to_dict()
        else:
            _get_logger().error(f"{context}: {str(error)}")
            if log_traceback:
                _get_logger().exception(error)
            return {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }


## Context Manager for Error Handling


class error_context:
    """Context manager for error handling."""

    def __init__(
        self,
        context: str = "",
        user_message: Optional[str] = None,
        reraise: bool = True,
    ):
        """Initialise error context manager."""

        self.context = context
        self.user_message = user_message
        self.reraise = reraise
        self.error = None

    def __enter__(self):
        """Enter the context."""
        return self

    def __exit__(self, exc_type, exc_value, exc_tb):
        """Exit the context and handle exceptions."""
        if exc_type is None:
            return False

        self.error = ErrorHandler.handle(exc_value, self.context)

        return not self.reraise


## Utility Functions


def safe_execute(func: Callable, *args, default=None, context: str = "", **kwargs):
    """Call a blocking function, logging any failure and returning a default."""
    try:
        return func(*args, **kwargs)

    except Exception as e:
        ErrorHandler.handle(e, context, log_traceback=False)
        return default


def format_error_message(error: Exception) -> str:
    """Format an error message for display."""
    if isinstance(error, XeetError):
        return error.message
    else:
        return "An unexpected error occurred - check logs for details."
