from abc import ABC
from datetime import datetime


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is absent or soft-deleted."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when no identity can be resolved for the request."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when an identified user lacks permission for an action."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class CapacityError(UserError):
    """Raised when an operation would exceed a fixed limit (e.g. pinned posts)."""


class AlreadyInStateError(UserError):
    """Raised when the target is already in the requested state."""


class RateLimitedError(UserError):
    """Raised when a rate-limited action is attempted too often."""

    def __init__(self, retry_at: datetime, message: str = "Too many requests") -> None:
        super().__init__(message)
        self.retry_at = retry_at
