"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry user-facing messages for API responses.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    FILE_NOT_FOUND = "file_not_found"
    FILE_EXPIRED = "file_expired"
    DOWNLOAD_LIMIT_REACHED = "download_limit_reached"
    STORAGE_INCONSISTENCY = "storage_inconsistency"
    INVALID_EXPIRY = "invalid_expiry"
    INVALID_REQUEST = "invalid_request"
    FILE_TOO_LARGE = "file_too_large"
    FILE_TYPE_NOT_ALLOWED = "file_type_not_allowed"
    INVALID_EMAIL = "invalid_email"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    EMAIL_FAILED = "email_failed"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The requested file does not exist or has been removed.",
        "action": "Upload a new file to get a fresh share link.",
    },
    ErrorCategory.FILE_EXPIRED: {
        "title": "File Expired",
        "message": "This file has expired and is no longer available.",
        "action": "Ask the sender to upload the file again.",
    },
    ErrorCategory.DOWNLOAD_LIMIT_REACHED: {
        "title": "Download Limit Reached",
        "message": "The maximum number of downloads for this file has been reached.",
        "action": "Ask the sender to share the file again.",
    },
    ErrorCategory.STORAGE_INCONSISTENCY: {
        "title": "File Unavailable",
        "message": "The file record exists but its content is missing from storage.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
    ErrorCategory.INVALID_EXPIRY: {
        "title": "Invalid Expiry",
        "message": "Expiry must be a whole number of hours between 1 and 168.",
        "action": "Choose an expiry between 1 hour and 7 days.",
    },
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded file exceeds the maximum allowed size.",
        "action": "Compress the file or split it before uploading.",
    },
    ErrorCategory.FILE_TYPE_NOT_ALLOWED: {
        "title": "File Type Not Allowed",
        "message": "This type of file cannot be shared.",
        "action": "Upload a document, image, video, audio file or archive.",
    },
    ErrorCategory.INVALID_EMAIL: {
        "title": "Invalid Email",
        "message": "One of the email addresses is not valid.",
        "action": "Check the addresses and try again.",
    },
    ErrorCategory.FORBIDDEN: {
        "title": "Not Allowed",
        "message": "You are not authorized to modify this file.",
        "action": "Only the uploader can delete this file.",
    },
    ErrorCategory.UNAUTHORIZED: {
        "title": "Login Required",
        "message": "This operation requires a signed-in account.",
        "action": "Sign in and try again.",
    },
    ErrorCategory.EMAIL_FAILED: {
        "title": "Email Not Sent",
        "message": "The share link could not be emailed.",
        "action": "Copy the link and send it manually, or try again later.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================


class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions are pure and have no external dependencies.
    They can optionally wrap original errors for context.
    """

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class FileRecordNotFoundError(DomainError):
    """Raised when no record exists for a file identifier."""

    pass


class FileGoneError(DomainError):
    """
    Raised when a record exists but may no longer be served.

    Distinct from FileRecordNotFoundError so callers can tell
    "this link was valid" from "this link never existed".
    """

    REASON_EXPIRED = "expired"
    REASON_LIMIT_REACHED = "download_limit_reached"

    def __init__(self, message: str, reason: str = REASON_EXPIRED, original_error: Exception = None):
        super().__init__(message, original_error)
        self.reason = reason


class StorageInconsistencyError(DomainError):
    """Raised when a metadata record points at a blob that is missing."""

    pass


class InvalidConfigurationError(DomainError):
    """Raised for lifecycle settings outside their allowed range."""

    pass


# Upload-facing name for the expiry-hours validation failure
InvalidExpiryError = InvalidConfigurationError


class ForbiddenError(DomainError):
    """Raised when a requester may not modify a record owned by someone else."""

    pass


class TransientIOError(DomainError):
    """
    Raised for a disk or metadata-store failure on a single record.

    Sweep and reconcile passes count these and move on.
    """

    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================


class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP responses.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


def category_for_gone(error: FileGoneError) -> ErrorCategory:
    """Pick the user-facing category for a Gone error."""
    if error.reason == FileGoneError.REASON_LIMIT_REACHED:
        return ErrorCategory.DOWNLOAD_LIMIT_REACHED
    return ErrorCategory.FILE_EXPIRED


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code
