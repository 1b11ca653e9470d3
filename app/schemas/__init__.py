"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ApiResponse,
    CurrentUser,
    LoginRequest,
    LoginResult,
    LogoutAllResult,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    SessionPublic,
    TokenPair,
    UserPublic,
)
from app.schemas.health import HealthResponse

__all__ = [
    "ApiResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "LoginResult",
    "LogoutAllResult",
    "LogoutRequest",
    "RefreshRequest",
    "RegisterRequest",
    "SessionPublic",
    "TokenPair",
    "UserPublic",
]
