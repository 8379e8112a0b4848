"""
NoteVault Backend — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for every failure the API reports.
How:   Each exception class carries a message, optional context dict, a stable
       machine-readable `error_code` and the HTTP status it maps to. One global
       handler in main.py turns any NoteVaultError into a JSON error response.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    NoteVaultError (base)
    ├── ValidationError            → 400 validation_error
    ├── DuplicateAccountError      → 409 duplicate_account
    ├── AuthenticationError        → 401 (sends WWW-Authenticate: Bearer)
    │   ├── AccountNotFoundError   → 401 account_not_found
    │   ├── InvalidCredentialsError→ 401 invalid_credentials
    │   ├── InvalidTokenError      → 401 invalid_token
    │   ├── ExpiredTokenError      → 401 expired_token
    │   └── UnauthenticatedError   → 401 unauthenticated
    ├── NotFoundError              → 404 not_found
    ├── RateLimitExceededError     → 429 rate_limit_exceeded
    └── StoreUnavailableError      → 500 server_error (message never leaks internals)

Login failures share a status code and body shape whether the email is unknown
or the password is wrong; only the `error` kind differs.
"""

from typing import Any, Dict, Optional


class NoteVaultError(Exception):
    """
    Base exception for all NoteVault application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only for 4xx kinds
                  that set `expose_context`)
    """

    error_code: str = "internal_error"
    status_code: int = 500
    expose_context: bool = False

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteVaultError):
    """
    Raised when client input fails validation.

    When:    Missing fields, bad formats, empty search query, an edit with no changes.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "No changes provided",
            "details": {"field": "body"}
        }
    """

    error_code = "validation_error"
    status_code = 400
    expose_context = True

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


class DuplicateAccountError(NoteVaultError):
    """
    Raised when registering an email that already belongs to an account.

    Covers both the lookup-before-insert check and the unique-constraint
    violation raised by the store when two registrations race.
    """

    error_code = "duplicate_account"
    status_code = 409

    def __init__(
        self,
        message: str = "An account with this email already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(NoteVaultError):
    """Base for every failure that maps to HTTP 401."""

    error_code = "unauthenticated"
    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AccountNotFoundError(AuthenticationError):
    """No account is registered under the email used to log in."""

    error_code = "account_not_found"

    def __init__(
        self,
        message: str = "Invalid email or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(AuthenticationError):
    """The password did not match the stored hash."""

    error_code = "invalid_credentials"

    def __init__(
        self,
        message: str = "Invalid email or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTokenError(AuthenticationError):
    """Signature check failed or the token payload is malformed."""

    error_code = "invalid_token"

    def __init__(
        self,
        message: str = "Session token is invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExpiredTokenError(AuthenticationError):
    """Signature is intact but the token is past its expiry."""

    error_code = "expired_token"

    def __init__(
        self,
        message: str = "Session token has expired, please log in again",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthenticatedError(AuthenticationError):
    """
    Raised when a protected route is called without usable credentials.

    When:    Missing Authorization header, non-Bearer scheme, empty token,
             or a valid token whose account no longer exists.
    """

    error_code = "unauthenticated"


class NotFoundError(NoteVaultError):
    """
    Raised when a requested resource does not exist for the caller.

    A note owned by another account is reported exactly like a note that
    does not exist at all.
    """

    error_code = "not_found"
    status_code = 404

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


class StoreUnavailableError(NoteVaultError):
    """
    Raised when database operations fail unexpectedly.

    What:    A query, insert, update or delete failed.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Detailed error info
    (exception type, constraint name) is logged server-side only.
    """

    error_code = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(NoteVaultError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes:
        - retry_after: Seconds until the rate limit window resets
        - Retry-After header for HTTP-compliant clients
    """

    error_code = "rate_limit_exceeded"
    status_code = 429
    expose_context = True

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
