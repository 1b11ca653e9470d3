"""Password and refresh-token hashing (bcrypt)."""

import hashlib

import bcrypt

# Default bcrypt cost; the running app uses Settings.BCRYPT_ROUNDS.
BCRYPT_ROUNDS = 10

# Min/max lengths for registration input validation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128
NAME_MAX_LEN = 255


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _token_digest(token: str) -> bytes:
    """
    SHA-256 hex digest of a token, used as the bcrypt input.

    JWTs are far longer than bcrypt's 72-byte input and tokens of the same user
    share their first 72 bytes (header plus subject claim), so hashing the raw
    token would make every refresh token of a user match every session row.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest().encode("ascii")


def hash_refresh_token(token: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Salted one-way hash of a refresh token for the session table."""
    return bcrypt.hashpw(_token_digest(token), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_refresh_token(token: str, hashed: str) -> bool:
    """Check a presented refresh token against a stored session hash."""
    try:
        return bcrypt.checkpw(_token_digest(token), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False
