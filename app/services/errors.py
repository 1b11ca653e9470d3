"""Typed failures raised by the auth core; the API layer maps them to HTTP responses."""


class AuthError(Exception):
    """Base class: carries a client-safe message and the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConflictError(AuthError):
    """Username or email already registered."""

    status_code = 409


class UnauthorizedError(AuthError):
    """Bad credentials, or a missing/invalid access token. Messages stay generic."""

    status_code = 401


class ForbiddenError(AuthError):
    """Refresh token invalid, unmatched or expired, or a role check failed."""

    status_code = 403


class NotFoundError(AuthError):
    """Referenced user or resource does not exist."""

    status_code = 404
