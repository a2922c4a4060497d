"""
Domain exceptions raised by the service layer.

Each class carries the HTTP status and the error label used by the uniform
error envelope (see api/errors.py). `code` narrows the failure down for
clients, e.g. REFRESH_TOKEN_EXPIRED ("refresh again later") versus
INVALID_REFRESH_TOKEN ("log in again").
"""
from __future__ import annotations

# Error codes
EMAIL_TAKEN = "EMAIL_TAKEN"
USERNAME_TAKEN = "USERNAME_TAKEN"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
MISSING_TOKEN = "MISSING_TOKEN"
MISSING_REFRESH_TOKEN = "MISSING_REFRESH_TOKEN"
ACCESS_TOKEN_EXPIRED = "ACCESS_TOKEN_EXPIRED"
INVALID_ACCESS_TOKEN = "INVALID_ACCESS_TOKEN"
REFRESH_TOKEN_EXPIRED = "REFRESH_TOKEN_EXPIRED"
INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
USER_NOT_FOUND = "USER_NOT_FOUND"
WRONG_CURRENT_PASSWORD = "WRONG_CURRENT_PASSWORD"
INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"


class AppError(Exception):
    status_code = 500
    error = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, code: str | None = None,
                 status_code: int | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.code = code
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} code={self.code} message={self.message!r}>"


class ValidationError(AppError):
    status_code = 400
    error = "VALIDATION_ERROR"
    default_message = "Invalid input"


class AuthenticationError(AppError):
    status_code = 401
    error = "UNAUTHORIZED"
    default_message = "Authentication required"


class TokenExpiredError(AuthenticationError):
    """Token signature is fine but its `exp` claim is in the past."""


class TokenInvalidError(AuthenticationError):
    """Bad signature, malformed token, or wrong issuer/audience/type."""


class AuthorizationError(AppError):
    status_code = 403
    error = "FORBIDDEN"
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    error = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    error = "CONFLICT"
    default_message = "Conflict"
