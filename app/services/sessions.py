"""Session registry: one row per live refresh token, stored only as a salted hash."""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session, sessionmaker

from app.models import UserSession

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
PROVENANCE_MAX_LEN = 255


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored instant is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(session: UserSession, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return as_utc(session.expires_at) <= now


def _provenance(value: str | None) -> str:
    value = (value or "").strip()
    return value[:PROVENANCE_MAX_LEN] if value else UNKNOWN


class SessionRegistry:
    """
    Repository for UserSession rows, always scoped by owning user.

    Each call is its own unit of work; there is deliberately no transaction
    spanning a caller's read-then-write sequence.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(
        self,
        user_id: str,
        refresh_token_hash: str,
        expires_at: datetime,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> UserSession:
        row = UserSession(
            user_id=user_id,
            refresh_token_hash=refresh_token_hash,
            device_info=_provenance(device_info),
            ip_address=_provenance(ip_address),
            expires_at=expires_at,
        )
        with self._session_factory() as db:
            db.add(row)
            db.commit()
            db.refresh(row)
        return row

    def list_for_user(self, user_id: str) -> list[UserSession]:
        """All of a user's sessions, most recently created first."""
        with self._session_factory() as db:
            return (
                db.query(UserSession)
                .filter(UserSession.user_id == user_id)
                .order_by(UserSession.created_at.desc())
                .all()
            )

    def rotate(self, session_id: str, refresh_token_hash: str, expires_at: datetime) -> bool:
        """Replace a row's token hash and expiry in place. False if the row is gone."""
        with self._session_factory() as db:
            updated = (
                db.query(UserSession)
                .filter(UserSession.id == session_id)
                .update(
                    {
                        UserSession.refresh_token_hash: refresh_token_hash,
                        UserSession.expires_at: expires_at,
                    },
                    synchronize_session=False,
                )
            )
            db.commit()
        return updated > 0

    def delete(self, session_id: str, user_id: str) -> int:
        """Delete one session if it belongs to user_id; returns rows deleted (0 or 1)."""
        with self._session_factory() as db:
            deleted = (
                db.query(UserSession)
                .filter(UserSession.id == session_id, UserSession.user_id == user_id)
                .delete(synchronize_session=False)
            )
            db.commit()
        return deleted

    def delete_latest(self, user_id: str) -> int:
        """Delete the user's most recently created session, if any."""
        with self._session_factory() as db:
            latest = (
                db.query(UserSession)
                .filter(UserSession.user_id == user_id)
                .order_by(UserSession.created_at.desc())
                .first()
            )
            if latest is None:
                return 0
            db.delete(latest)
            db.commit()
        return 1

    def delete_all(self, user_id: str) -> int:
        with self._session_factory() as db:
            deleted = (
                db.query(UserSession)
                .filter(UserSession.user_id == user_id)
                .delete(synchronize_session=False)
            )
            db.commit()
        return deleted

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete every session whose expires_at has passed. Idempotent."""
        cutoff = now or datetime.now(timezone.utc)
        with self._session_factory() as db:
            deleted = (
                db.query(UserSession)
                .filter(UserSession.expires_at <= cutoff)
                .delete(synchronize_session=False)
            )
            db.commit()
        if deleted > 0:
            logger.info(
                "Expired sessions purged",
                extra={"cutoff": cutoff.isoformat(), "sessions_deleted": deleted},
            )
        return deleted
