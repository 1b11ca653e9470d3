"""ORM model for login sessions: one row per live refresh token."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.models.user import utcnow


class UserSession(Base):
    """
    Server-side record of one refresh token issued to one device.

    refresh_token_hash is a salted bcrypt hash, so rows cannot be looked up by
    token; they are matched by scanning a user's sessions.
    """

    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    refresh_token_hash = Column(Text, nullable=False)
    device_info = Column(String(255), nullable=False, default="Unknown")
    ip_address = Column(String(255), nullable=False, default="Unknown")
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="sessions")
