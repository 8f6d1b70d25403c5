"""
Create a user of any role (managers and admins cannot self-register). Run from project root:
  python -m pathfinder.scripts.create_user EMAIL PASSWORD [role] [--first-name X] [--last-name Y]
Example:
  python -m pathfinder.scripts.create_user admin@example.com your-secure-password admin
"""
import argparse
import logging
import sys

from pathfinder.core.database import SessionLocal
from pathfinder.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from pathfinder.models import Role
from pathfinder.services.credentials import create_user, get_user_by_email
from pathfinder.services.errors import DuplicateIdentityError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Pathfinder user.")
    parser.add_argument("email", help="Login email (max 255 chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=Role.BUYER.value, choices=[r.value for r in Role])
    parser.add_argument("--first-name", default=None)
    parser.add_argument("--last-name", default=None)
    args = parser.parse_args(argv)

    email = args.email.strip()
    if not email or len(email) > 255 or "@" not in email:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        if get_user_by_email(db, email) is not None:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        try:
            user = create_user(
                db,
                email=email,
                password=args.password,
                first_name=args.first_name,
                last_name=args.last_name,
                role=Role(args.role),
            )
        except DuplicateIdentityError as e:
            print(e.message, file=sys.stderr)
            return 1
        db.commit()
        logger.info("Created user", extra={"user_id": user.id, "role": user.role})
        print(f"Created user '{user.email}' with role '{user.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
