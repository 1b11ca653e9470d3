"""Credential store: persistence and uniqueness rules for user accounts."""

import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.core.security import BCRYPT_ROUNDS, hash_password
from app.models import User, UserRole
from app.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email is already registered"
USERNAME_TAKEN = "Username is already taken"

# Fields privileged flows may change after registration.
MUTABLE_USER_FIELDS = frozenset({"name", "role"})


class CredentialStore:
    """
    Repository for User rows.

    Every method opens its own short-lived session; returned objects are
    detached but fully loaded (the factory sets expire_on_commit=False).
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ) -> None:
        self._session_factory = session_factory
        self._bcrypt_rounds = bcrypt_rounds

    def find_by_identifier(self, identifier: str) -> User | None:
        """User whose username OR email equals identifier (exact, case-sensitive)."""
        with self._session_factory() as db:
            return (
                db.query(User)
                .filter(or_(User.username == identifier, User.email == identifier))
                .first()
            )

    def find_by_id(self, user_id: str) -> User:
        """Return the user or raise NotFoundError."""
        with self._session_factory() as db:
            user = db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_users(self) -> list[User]:
        with self._session_factory() as db:
            return db.query(User).order_by(User.username).all()

    def create(self, username: str, email: str, password: str, name: str) -> User:
        """
        Insert a new user with a bcrypt-hashed password.
        Raises ConflictError when the email (checked first) or username is taken.
        """
        with self._session_factory() as db:
            if db.query(User.id).filter(User.email == email).first() is not None:
                raise ConflictError(EMAIL_TAKEN)
            if db.query(User.id).filter(User.username == username).first() is not None:
                raise ConflictError(USERNAME_TAKEN)

            user = User(
                username=username,
                email=email,
                password_hash=hash_password(password, self._bcrypt_rounds),
                name=name,
                role=UserRole.USER,
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError as e:
                # A concurrent registration won the unique index race
                db.rollback()
                if db.query(User.id).filter(User.email == email).first() is not None:
                    raise ConflictError(EMAIL_TAKEN) from e
                raise ConflictError(USERNAME_TAKEN) from e
            db.refresh(user)

        logger.info("User registered", extra={"user_id": user.id})
        return user

    def update(self, user_id: str, **fields) -> User:
        """Change mutable fields (name, role). Raises NotFoundError for unknown ids."""
        unknown = set(fields) - MUTABLE_USER_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)!r}")
        with self._session_factory() as db:
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            for key, value in fields.items():
                setattr(user, key, value)
            db.commit()
            db.refresh(user)
        return user
