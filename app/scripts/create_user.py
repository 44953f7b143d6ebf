"""
Create an approved account with roles (no signup or approval step). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD [--name NAME] [--role ROLE ...]
Example:
  python -m app.scripts.create_user ops@example.com your-secure-password --role admin
"""
import argparse
import sys

from app.core.clock import utcnow
from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password, normalize_email
from app.models import Account, Role
from app.models.account import APPROVAL_APPROVED


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an approved account.")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("--name", default=None, help="Display name (defaults to the email)")
    parser.add_argument(
        "--role",
        action="append",
        default=[],
        help="Role name to assign; repeat for several (default: user)",
    )
    args = parser.parse_args()

    email = normalize_email(args.email)
    if not email or "@" not in email or len(email) > 255:
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    role_names = args.role or ["user"]

    settings = get_settings()
    db = SessionLocal()
    try:
        if db.query(Account).filter(Account.email == email).first():
            print(f"Account '{email}' already exists.", file=sys.stderr)
            return 1
        roles = db.query(Role).filter(Role.name.in_(role_names)).all()
        missing = set(role_names) - {r.name for r in roles}
        if missing:
            print(f"Unknown roles: {', '.join(sorted(missing))}. Run app.bootstrap first?", file=sys.stderr)
            return 1
        account = Account(
            email=email,
            password_hash=hash_password(args.password, rounds=settings.BCRYPT_ROUNDS),
            full_name=args.name or email,
            approval_status=APPROVAL_APPROVED,
            approved_at=utcnow(),
            active=True,
        )
        account.roles = roles
        db.add(account)
        db.commit()
        print(f"Created account '{email}' with roles {', '.join(sorted(role_names))}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
