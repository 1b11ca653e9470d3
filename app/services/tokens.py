"""JWT signing and verification for access and refresh tokens (two secrets, two TTLs)."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import jwt

if TYPE_CHECKING:
    from app.core.config import Settings

# Claims every token must carry; verification fails when any is absent.
REQUIRED_CLAIMS = ("sub", "username", "role", "exp", "iat")


class InvalidTokenError(Exception):
    """Raised when a token has a bad signature, is malformed, lacks claims, or has expired."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


@dataclass(frozen=True)
class TokenContext:
    """One signing context: a symmetric secret plus a lifetime."""

    name: str
    secret: str
    ttl: timedelta
    algorithm: str = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    """Subject claims shared by access and refresh tokens."""

    sub: str
    username: str
    role: str


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str


class TokenService:
    """
    Stateless issue/verify over the access and refresh contexts.

    Verification never consults the session table: revoking a session is
    enforced separately by the session registry, so the secrets never rotate.
    """

    def __init__(self, access: TokenContext, refresh: TokenContext) -> None:
        if access.secret == refresh.secret:
            raise ValueError("Access and refresh contexts must use different secrets")
        self.access = access
        self.refresh = refresh

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        return cls(
            access=TokenContext(
                name="access",
                secret=settings.JWT_SECRET.get_secret_value(),
                ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
                algorithm=settings.JWT_ALGORITHM,
            ),
            refresh=TokenContext(
                name="refresh",
                secret=settings.JWT_REFRESH_SECRET.get_secret_value(),
                ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
                algorithm=settings.JWT_ALGORITHM,
            ),
        )

    def issue(self, claims: TokenClaims, context: TokenContext) -> str:
        """Sign claims with the context's secret; exp = now + context TTL."""
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(claims.sub),
            "username": claims.username,
            "role": claims.role,
            "iat": now,
            "exp": now + context.ttl,
            # jti keeps two tokens issued in the same second distinct
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, context.secret, algorithm=context.algorithm)

    def issue_pair(self, claims: TokenClaims) -> IssuedTokens:
        return IssuedTokens(
            access_token=self.issue(claims, self.access),
            refresh_token=self.issue(claims, self.refresh),
        )

    def verify(self, token: str, context: TokenContext) -> TokenClaims:
        """
        Decode and validate a token against one context.
        Raises InvalidTokenError on any failure.
        """
        if not token:
            raise InvalidTokenError("Token is empty")
        try:
            payload = jwt.decode(
                token,
                context.secret,
                algorithms=[context.algorithm],
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError(f"{context.name} token has expired", e) from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Invalid {context.name} token", e) from e

        sub, username, role = payload.get("sub"), payload.get("username"), payload.get("role")
        if not all(isinstance(v, str) and v for v in (sub, username, role)):
            raise InvalidTokenError(f"Invalid {context.name} token payload")
        return TokenClaims(sub=sub, username=username, role=role)
