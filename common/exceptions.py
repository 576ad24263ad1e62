"""Application error kinds.

Every error carries the HTTP status and machine-readable code it is rendered
with at the API boundary (see ``app.main``).
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors that map to a structured JSON response."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, extra: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.extra = extra or {}
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = 400
    code = "bad_request"
    default_message = "Bad request"


class DuplicateEmail(AppError):
    status_code = 400
    code = "duplicate_email"
    default_message = "An account with this email already exists"


class InvalidCredentials(AppError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid email or password"


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Not authenticated"


class InvalidToken(Unauthenticated):
    code = "invalid_token"
    default_message = "Invalid or expired token"


class FederatedAuthError(AppError):
    status_code = 401
    code = "federated_auth_error"
    default_message = "Federated authentication failed"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "You do not have permission to perform this action"


class PendingVerification(AppError):
    status_code = 403
    code = "pending_verification"
    default_message = "Account pending verification"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, extra={"pendingVerification": True})


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class ServiceUnavailable(AppError):
    status_code = 503
    code = "service_unavailable"
    default_message = "Service is not configured"


class InternalError(AppError):
    pass
