"""
Notekeep Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) turn them into the
       structured `{success: false, ...}` response with the right status.
Who:   Raised by services and the auth dependency; caught by global handlers.

Exception Hierarchy:
    NotekeepError (base)
    ├── ValidationError        → 400 Bad Request
    ├── UnauthenticatedError   → 401 (no session token)
    ├── InvalidTokenError      → 401 (bad/expired token, account gone)
    ├── UnauthorizedError      → 401 (wrong credentials)
    ├── NotFoundError          → 404 (missing OR foreign-owned)
    ├── ConflictError          → 409 (duplicate unique field)
    ├── DatabaseError          → 500
    └── RenderError            → 500 (export rendering failed)

Ownership violations are always raised as NotFoundError. There is no
"forbidden" exception in this hierarchy.
"""

from typing import Any, Dict, Optional


class NotekeepError(Exception):
    """
    Base exception for all Notekeep application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only validation details are
                  returned to the client)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotekeepError):
    """
    Raised when client input fails a business rule.

    When: Missing title/body, malformed email, short password, reminder in
          the past, empty bulk-delete id list.
    HTTP: 400 Bad Request
    """

    status_code = 400
    error_code = "validation_error"

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


class UnauthenticatedError(NotekeepError):
    """No session token was presented (header or cookie)."""

    status_code = 401
    error_code = "unauthenticated"

    def __init__(self, message: str = "No token provided", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class InvalidTokenError(NotekeepError):
    """
    The session token failed signature/expiry checks, lacks the identity
    claims, or references an account that no longer exists.
    """

    status_code = 401
    error_code = "invalid_token"

    def __init__(self, message: str = "Invalid token", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class UnauthorizedError(NotekeepError):
    """
    Wrong credentials at login or password change.

    The message never says whether the email or the password was wrong.
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Invalid email or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(NotekeepError):
    """
    Raised when a requested resource does not exist for the caller.

    A note owned by someone else raises exactly this, with the same message,
    so callers cannot discover other users' note ids.
    HTTP: 404 Not Found
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(NotekeepError):
    """A unique field (user email) is already taken. HTTP: 409 Conflict"""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(NotekeepError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the original
    error type is kept in context and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RenderError(NotekeepError):
    """A document renderer (PDF/Markdown) failed to produce output."""

    def __init__(
        self,
        message: str = "Could not export the note. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
