"""
StayBook Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for every error scenario.
How:   Each exception carries a user-safe message and an optional context
       dict. Global exception handlers (registered in main.py) turn them into
       structured JSON responses with the matching HTTP status code.
Who:   Raised by services, the authorization gate and routes.

Exception Hierarchy:
    StayBookError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── DuplicateEmailError      → 409 Conflict
    ├── InvalidCredentialsError  → 422 Unprocessable Entity (wrong password)
    ├── AuthenticationError      → 401 Unauthorized
    ├── AuthorizationError       → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (stale listing version)
    ├── FileStorageError         → 500 Internal Server Error
    ├── RemoteFetchError         → 502 Bad Gateway
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests
"""

from typing import Any, Dict, Optional


class StayBookError(Exception):
    """
    Base exception for all StayBook application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only selectively returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(StayBookError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (missing fields, wrong types) are rejected by
    FastAPI with 422 before reaching the services; this class covers rules
    such as "check-out must be after check-in" or "file type not allowed".
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DuplicateEmailError(StayBookError):
    """Registration conflict: an account with this email already exists."""

    def __init__(self, email: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["field"] = "email"
        super().__init__(
            message=f"An account with email '{email}' already exists",
            context=ctx,
        )
        self.email = email


class InvalidCredentialsError(StayBookError):
    """Login attempt with a known email but the wrong password."""

    def __init__(self, message: str = "Incorrect password"):
        super().__init__(message=message)


class AuthenticationError(StayBookError):
    """
    Raised when a protected route is called without a valid session.

    Covers a missing cookie as well as any token that fails verification.
    The message is deliberately identical for every verification failure
    so responses do not reveal which check failed.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(StayBookError):
    """
    Raised when an authenticated identity may not mutate a resource.

    HTTP: 403 Forbidden. Raised before any field of the resource is touched.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(
            message=f"You are not allowed to modify this {resource}",
            context=ctx,
        )


class NotFoundError(StayBookError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; services convert that into
    this exception so routes never deal with None checks.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(StayBookError):
    """
    Raised when a write is based on a stale version of a resource.

    The client should re-fetch the resource and re-apply its change.
    """

    def __init__(
        self,
        message: str = "The resource was modified by another request. Reload and try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(StayBookError):
    """
    Raised when file system operations fail (disk full, permission denied).

    The client gets a generic message; paths and OS errors are only logged.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RemoteFetchError(StayBookError):
    """
    Raised when an image could not be downloaded for upload-by-link.

    HTTP: 502 Bad Gateway. The remote host failed, not the client input.
    """

    def __init__(
        self,
        message: str = "Could not download the image from the given link",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(StayBookError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic. SQL, constraint
        names and driver errors are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(StayBookError):
    """Raised when a client exceeds the per-IP request rate limit."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
