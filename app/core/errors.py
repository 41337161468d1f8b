"""
Application Error Taxonomy

Every expected failure is an AppError subclass carrying a stable,
machine-readable ``code`` and the HTTP status the API layer answers with.
Services raise these; the exception handler in ``app.main`` renders them as:

    {"success": false, "error": "<message>", "code": "<code>", "detail": ...}

Author: Khalil Bannouri
Version: 3.0.0
"""

from typing import Any, Optional


# Soft failure kind: reported next to a success response, never raised.
EMAIL_DISPATCH_FAILURE = "EmailDispatchFailure"


class AppError(Exception):
    """Base class for all expected application failures."""

    code: str = "AppError"
    status_code: int = 400
    message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, detail: Any = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the standard error body."""
        body: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.detail is not None:
            body["detail"] = self.detail
        return body


# =============================================================================
# REGISTRATION / VERIFICATION
# =============================================================================

class DuplicateEmail(AppError):
    code = "DuplicateEmail"
    status_code = 409
    message = "An account with this email already exists"


class WeakPassword(AppError):
    code = "WeakPassword"
    status_code = 400
    message = "Password does not meet the strength requirements"


class TokenNotFound(AppError):
    code = "TokenNotFound"
    status_code = 400
    message = "Invalid or already used verification token"


class TokenExpired(AppError):
    code = "TokenExpired"
    status_code = 400
    message = "Verification token has expired"


class UserNotFound(AppError):
    code = "UserNotFound"
    status_code = 404
    message = "User not found"


class AlreadyVerified(AppError):
    code = "AlreadyVerified"
    status_code = 409
    message = "Email address is already verified"


# =============================================================================
# AUTHENTICATION
# =============================================================================

class InvalidCredentials(AppError):
    code = "InvalidCredentials"
    status_code = 401
    message = "Invalid email or password"


class Unauthorized(AppError):
    code = "Unauthorized"
    status_code = 401
    message = "Authentication required"


class EmailNotVerified(AppError):
    code = "EmailNotVerified"
    status_code = 403
    message = "Please verify your email address before logging in"


class Forbidden(AppError):
    code = "Forbidden"
    status_code = 403
    message = "Not allowed"


class RateLimited(AppError):
    code = "RateLimited"
    status_code = 429
    message = "Too many requests, please try again later"


# =============================================================================
# RESOURCES
# =============================================================================

class OrderNotFound(AppError):
    code = "OrderNotFound"
    status_code = 404
    message = "Order not found"


class RequestValidationFailed(AppError):
    code = "ValidationError"
    status_code = 400
    message = "Request validation failed"


# =============================================================================
# INFRASTRUCTURE
# =============================================================================

class PersistenceFailure(AppError):
    """Opaque storage failure. The underlying error is logged, never returned."""
    code = "PersistenceFailure"
    status_code = 500
    message = "An internal error occurred, please try again later"
