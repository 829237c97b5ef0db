"""Custom exception hierarchy for DocVault.

Every expected failure kind (unauthenticated, forbidden, not found, conflict,
validation) is a subclass of ``DocVaultException`` carrying its HTTP status,
so services raise them and the exception handler renders them uniformly.
Access *denials* computed by the resolver are not exceptions; they are
``AccessDecision`` values that callers may turn into one of these.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Lookup errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    REPOSITORY_NOT_FOUND = "REPOSITORY_NOT_FOUND"
    ASSIGNMENT_NOT_FOUND = "ASSIGNMENT_NOT_FOUND"
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Input errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Duplicate resources
    CONFLICT = "CONFLICT"

    # Storage
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DocVaultException(Exception):
    """
    Base exception for all DocVault errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ResourceNotFoundError(DocVaultException):
    """No file or folder with this id."""

    def __init__(self, resource_id: str):
        super().__init__(
            f"Resource not found: {resource_id}",
            ErrorCode.RESOURCE_NOT_FOUND,
            status_code=404,
            details={"resource_id": resource_id}
        )


class RepositoryNotFoundError(DocVaultException):
    """Repository not found in database."""

    def __init__(self, repository_id: str):
        super().__init__(
            f"Repository not found: {repository_id}",
            ErrorCode.REPOSITORY_NOT_FOUND,
            status_code=404,
            details={"repository_id": repository_id}
        )


class AssignmentNotFoundError(DocVaultException):
    """No assignment exists for the (user, resource) pair."""

    def __init__(self, resource_id: str, user_id: str):
        super().__init__(
            f"Assignment not found for user {user_id} on {resource_id}",
            ErrorCode.ASSIGNMENT_NOT_FOUND,
            status_code=404,
            details={"resource_id": resource_id, "user_id": user_id}
        )


class NotificationNotFoundError(DocVaultException):
    """Notification missing, or no longer pending when a resolution was attempted."""

    def __init__(self, notification_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"Notification not found: {notification_id}",
            ErrorCode.NOTIFICATION_NOT_FOUND,
            status_code=404,
            details={"notification_id": notification_id}
        )


class UserNotFoundError(DocVaultException):
    """User not found in database."""

    def __init__(self, user_ref: str):
        super().__init__(
            f"User not found: {user_ref}",
            ErrorCode.USER_NOT_FOUND,
            status_code=404,
            details={"user": user_ref}
        )


class ValidationError(DocVaultException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(DocVaultException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(DocVaultException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class ConflictError(DocVaultException):
    """A resource already exists at the requested location."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details,
        )


class DatabaseError(DocVaultException):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
