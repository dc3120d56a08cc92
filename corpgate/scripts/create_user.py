"""
Create an Active user (e.g. the first admin). Run from project root:
  python -m corpgate.scripts.create_user EMAIL PASSWORD [role] [--username NAME]
Example:
  python -m corpgate.scripts.create_user admin@example.com your-secure-password Admin
"""
import argparse
import sys

from corpgate.core.config import get_settings
from corpgate.core.database import SessionLocal
from corpgate.core.security import hash_password
from corpgate.models.user import STATUS_ACTIVE
from corpgate.services import user_store

ALL_PAGES = [
    "Profile",
    "Issues",
    "Orders",
    "Devices",
    "Facilities",
    "Networks",
    "Suppliers",
    "Warehouse",
    "Sectors",
    "Profiles",
    "Roles",
    "Users",
]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an Active CorpGate user (bypasses onboarding).")
    parser.add_argument("email", help="Email address (stored lowercased)")
    parser.add_argument("password", help="Password")
    parser.add_argument("role", nargs="?", default="Admin", help="Role (default: Admin)")
    parser.add_argument("--username", default=None, help="Display name")
    args = parser.parse_args(argv)

    email = user_store.normalize_email(args.email)
    if not email or len(email) > 255 or "@" not in email:
        print("Invalid email.", file=sys.stderr)
        return 1
    min_len = get_settings().PASSWORD_MIN_LEN
    if len(args.password) < min_len:
        print(f"Password must be at least {min_len} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        if user_store.get_user_by_email(db, email) is not None:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user_store.create_user(
            db,
            email,
            hash_password(args.password),
            args.role,
            username=args.username,
            status=STATUS_ACTIVE,
            allowed_pages=ALL_PAGES,
            password_set=True,
        )
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
