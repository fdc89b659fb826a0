"""Print a bearer token for an existing user to stdout.

Usage:
    python -m backend.issue_token <user_id>
"""
import sys

from backend.auth.jwt_handler import create_access_token
from backend.database import SessionLocal
from backend.models.user import User


def main(argv: list[str] | None = None, session_factory=SessionLocal) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1 or not args[0].isdigit():
        print("Usage: python -m backend.issue_token <user_id>", file=sys.stderr)
        return 2

    db = session_factory()
    try:
        user = db.query(User).filter(User.id == int(args[0])).first()
    finally:
        db.close()
    if user is None:
        print(f"User {args[0]} not found.", file=sys.stderr)
        return 1

    print(create_access_token(subject=str(user.id)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
