"""
Custom exceptions for the application.
All exceptions map to standard error codes and HTTP status codes.
"""
from typing import Optional, Dict, Any

from strain_tracker.schemas.error import ErrorCode


class AppException(Exception):
    """
    Base exception class for all application exceptions.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentException(AppException):
    """Raised when request arguments are invalid (422)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.INVALID_ARGUMENT, message, details)


class ReviewValidationException(InvalidArgumentException):
    """Raised when a review fails the submission rules (422)."""

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message, {"reason": reason})


class NotFoundException(AppException):
    """Raised when a resource is not found (404)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.NOT_FOUND, message, details)


class ConflictException(AppException):
    """Raised when there is a conflict (409)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.CONFLICT, message, details)


class OperationInProgressException(ConflictException):
    """Raised when a single-flight operation is already running (409)."""

    def __init__(self, operation: str):
        super().__init__(
            "Another request of this kind is in progress.",
            {"operation": operation},
        )


class UnauthorizedException(AppException):
    """Raised when authentication is required (401)."""

    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.UNAUTHORIZED, message, details)


class WeakPasswordException(AppException):
    """Raised when a sign-up password is too short (400)."""

    def __init__(self, message: str = "Password is too weak. Must be at least 6 characters."):
        super().__init__(ErrorCode.WEAK_PASSWORD, message)


class EmailInUseException(AppException):
    """Raised when a sign-up email is already registered (409)."""

    def __init__(self, message: str = "This email is already registered. Try logging in."):
        super().__init__(ErrorCode.EMAIL_IN_USE, message)


class SignInFailedException(AppException):
    """Raised for any credential or token mismatch (401)."""

    def __init__(self, message: str = "Login failed. Check your email and password."):
        super().__init__(ErrorCode.SIGN_IN_FAILED, message)


class StoreUnavailableException(AppException):
    """Raised when a document store read or write fails (503)."""

    def __init__(
        self, message: str = "Document store unavailable", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(ErrorCode.STORE_UNAVAILABLE, message, details)


class ConfigurationException(AppException):
    """Raised when the backend configuration is missing (503)."""

    def __init__(
        self,
        message: str = "Backend configuration is missing.",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(ErrorCode.CONFIGURATION, message, details)
