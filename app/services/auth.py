"""Auth orchestration: register, login, refresh-token rotation, logout and session listing."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from app.core.security import (
    hash_password,
    hash_refresh_token,
    verify_password,
    verify_refresh_token,
)
from app.models import User, UserSession
from app.schemas.auth import LoginResult, SessionPublic, TokenPair, UserPublic
from app.services.credentials import CredentialStore
from app.services.errors import ForbiddenError, NotFoundError, UnauthorizedError
from app.services.sessions import SessionRegistry, is_expired
from app.services.tokens import InvalidTokenError, TokenClaims, TokenService

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Same message for unknown identifier and wrong password (no account enumeration).
INVALID_CREDENTIALS = "Invalid email/username or password"
INVALID_REFRESH_TOKEN = "Refresh token is invalid or expired"
UNMATCHED_REFRESH_TOKEN = "Refresh token is invalid"
SESSION_EXPIRED = "Session expired, please log in again"


def _claims_for(user: User) -> TokenClaims:
    return TokenClaims(sub=user.id, username=user.username, role=user.role.value)


class AuthService:
    """
    Composes the credential store, session registry and token service.

    Refresh tokens are returned to the caller once and only their bcrypt hash
    is kept; a successful refresh overwrites the matched session row, so the
    presented token can never be used again.
    """

    def __init__(
        self,
        users: CredentialStore,
        sessions: SessionRegistry,
        tokens: TokenService,
        settings: Settings,
    ) -> None:
        self.users = users
        self.sessions = sessions
        self.tokens = tokens
        self.session_ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        self._bcrypt_rounds = settings.BCRYPT_ROUNDS
        # Verified against when the identifier is unknown so both failures cost one bcrypt check.
        self._dummy_hash = hash_password(secrets.token_urlsafe(16), self._bcrypt_rounds)

    def register(self, username: str, email: str, password: str, name: str) -> UserPublic:
        user = self.users.create(username=username, email=email, password=password, name=name)
        return UserPublic.model_validate(user)

    def login(
        self,
        identifier: str,
        password: str,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> LoginResult:
        """Verify credentials, issue a token pair and open a new session row."""
        user = self.users.find_by_identifier(identifier)
        if user is None:
            verify_password(password, self._dummy_hash)
            logger.info(
                "Login rejected",
                extra={"reason": "unknown_identifier", "identifier_length": len(identifier)},
            )
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            logger.info("Login rejected", extra={"reason": "bad_password", "user_id": user.id})
            raise UnauthorizedError(INVALID_CREDENTIALS)

        issued = self.tokens.issue_pair(_claims_for(user))
        session = self.sessions.create(
            user_id=user.id,
            refresh_token_hash=hash_refresh_token(issued.refresh_token, self._bcrypt_rounds),
            expires_at=datetime.now(timezone.utc) + self.session_ttl,
            device_info=device_info,
            ip_address=ip_address,
        )
        logger.info("Login succeeded", extra={"user_id": user.id, "session_id": session.id})
        return LoginResult(
            user=UserPublic.model_validate(user),
            access_token=issued.access_token,
            refresh_token=issued.refresh_token,
        )

    def _match_session(self, user_id: str, refresh_token: str) -> UserSession | None:
        # Hashes are salted, so the only lookup is a per-user scan with bcrypt compare.
        for session in self.sessions.list_for_user(user_id):
            if verify_refresh_token(refresh_token, session.refresh_token_hash):
                return session
        return None

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Rotate a refresh token: verify it, find its session, issue a new pair
        and overwrite the session's hash and expiry. All failures are Forbidden.
        """
        try:
            claims = self.tokens.verify(refresh_token, self.tokens.refresh)
        except InvalidTokenError as e:
            logger.info("Refresh rejected", extra={"reason": e.message})
            raise ForbiddenError(INVALID_REFRESH_TOKEN) from e

        user_id = claims.sub
        session = self._match_session(user_id, refresh_token)
        if session is None:
            logger.info("Refresh rejected", extra={"reason": "no_matching_session", "user_id": user_id})
            raise ForbiddenError(UNMATCHED_REFRESH_TOKEN)

        if is_expired(session):
            self.sessions.delete(session.id, user_id)
            logger.info("Refresh rejected", extra={"reason": "session_expired", "session_id": session.id})
            raise ForbiddenError(SESSION_EXPIRED)

        try:
            user = self.users.find_by_id(user_id)
        except NotFoundError as e:
            raise ForbiddenError("User not found") from e

        issued = self.tokens.issue_pair(_claims_for(user))
        rotated = self.sessions.rotate(
            session.id,
            refresh_token_hash=hash_refresh_token(issued.refresh_token, self._bcrypt_rounds),
            expires_at=datetime.now(timezone.utc) + self.session_ttl,
        )
        if not rotated:
            # Revoked by a concurrent logout after the match step
            logger.info("Refresh rejected", extra={"reason": "session_revoked", "session_id": session.id})
            raise ForbiddenError(UNMATCHED_REFRESH_TOKEN)
        logger.info("Refresh token rotated", extra={"user_id": user_id, "session_id": session.id})
        return TokenPair(access_token=issued.access_token, refresh_token=issued.refresh_token)

    def logout(self, user_id: str, session_id: str | None = None) -> int:
        """Revoke one session (the given one, or the newest). Never fails; returns rows deleted."""
        if session_id:
            deleted = self.sessions.delete(session_id, user_id)
        else:
            deleted = self.sessions.delete_latest(user_id)
        logger.info("Logout", extra={"user_id": user_id, "sessions_deleted": deleted})
        return deleted

    def logout_all(self, user_id: str) -> int:
        deleted = self.sessions.delete_all(user_id)
        logger.info("Logout from all devices", extra={"user_id": user_id, "sessions_deleted": deleted})
        return deleted

    def get_sessions(self, user_id: str) -> list[SessionPublic]:
        return [SessionPublic.model_validate(s) for s in self.sessions.list_for_user(user_id)]

    def get_profile(self, user_id: str) -> UserPublic:
        return UserPublic.model_validate(self.users.find_by_id(user_id))

    def list_users(self) -> list[UserPublic]:
        return [UserPublic.model_validate(u) for u in self.users.list_users()]
