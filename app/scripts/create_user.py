"""
Create a user (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user USERNAME EMAIL PASSWORD NAME [role]
Example:
  python -m app.scripts.create_user admin admin@example.com your-secure-password "Site Admin" admin
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.security import (
    NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from app.models import UserRole
from app.services.credentials import CredentialStore
from app.services.errors import ConflictError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Panel API user.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("name", help="Display name")
    parser.add_argument(
        "role",
        nargs="?",
        default=UserRole.USER.value,
        type=str.upper,
        choices=[r.value for r in UserRole],
    )
    args = parser.parse_args(argv)

    username = args.username.strip()
    name = args.name.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    if "@" not in args.email or not name or len(name) > NAME_MAX_LEN:
        print("Invalid email or name.", file=sys.stderr)
        return 1

    store = CredentialStore(SessionLocal, bcrypt_rounds=get_settings().BCRYPT_ROUNDS)
    try:
        user = store.create(username=username, email=args.email.strip(), password=args.password, name=name)
    except ConflictError as e:
        print(f"{e.message}.", file=sys.stderr)
        return 1

    role = UserRole(args.role)
    if role is not UserRole.USER:
        user = store.update(user.id, role=role)
    print(f"Created user '{user.username}' with role '{user.role.value}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
