"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.security import (
    NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from app.models.user import UserRole

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope for successful auth responses."""

    success: bool = Field(default=True, description="Always true for 2xx responses")
    message: str = Field(..., description="Human-readable outcome")
    data: DataT | None = Field(default=None, description="Operation payload")


class RegisterRequest(BaseModel):
    """New account details."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LEN, description="Display name")


class LoginRequest(BaseModel):
    """Credentials for login; identifier is a username or an email."""

    identifier: str = Field(..., min_length=1, max_length=255, description="Username or email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class RefreshRequest(BaseModel):
    """Refresh token presented in the body (never as a bearer header)."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., alias="refreshToken", min_length=1)


class LogoutRequest(BaseModel):
    """Optional target session; defaults to the most recent one."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")


class CurrentUser(BaseModel):
    """Authenticated principal (id, username, role) taken from a verified access token."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    role: UserRole


class UserPublic(BaseModel):
    """User as returned to clients (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    name: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


class SessionPublic(BaseModel):
    """Session metadata; the refresh token hash is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    device_info: str
    ip_address: str
    created_at: datetime
    expires_at: datetime


class TokenPair(BaseModel):
    """Access and refresh tokens issued together."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken", description="JWT access token")
    refresh_token: str = Field(..., alias="refreshToken", description="JWT refresh token")


class LoginResult(TokenPair):
    """Login payload: sanitized user plus both raw tokens."""

    user: UserPublic


class LogoutAllResult(BaseModel):
    """Number of sessions revoked."""

    count: int
