"""
Application Errors

Every failure a service can report maps to exactly one HTTP status.
Handlers in app.main turn these into ``{"message": ..., "error": ...}``.
"""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    status_code: int = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error


class ValidationError(AppError):
    """Raised when a required field is missing or malformed."""
    status_code = 400


class AuthenticationError(AppError):
    """Raised when the request carries no valid identity."""
    status_code = 401


class PermissionDeniedError(AppError):
    """Raised when the identity is valid but the role is insufficient."""
    status_code = 403


class NotFoundError(AppError):
    """Raised when a referenced record does not exist."""
    status_code = 404


class ConflictError(AppError):
    """Raised when a unique field is already taken."""
    status_code = 409


class UpstreamError(AppError):
    """Raised when the store or the object storage fails."""
    status_code = 500
