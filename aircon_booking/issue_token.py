"""Create (or look up) a user and print a bearer token for it.

Usage:
    python -m aircon_booking.issue_token dispatcher@example.com --role admin
"""
import argparse
import sys

from aircon_booking.auth.jwt_handler import create_access_token
from aircon_booking.database import Base, SessionLocal, engine
from aircon_booking.models.user import User

ROLES = ("admin", "customer")


def issue_token(email: str, role: str, expires_minutes: int | None = None) -> str:
    email = email.strip().lower()
    Base.metadata.create_all(bind=engine, tables=[User.__table__])
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = User(email=email, role=role)
            db.add(user)
        else:
            user.role = role
        db.commit()
    finally:
        db.close()
    return create_access_token(subject=email, expires_minutes=expires_minutes)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Issue a bearer token for the booking API.")
    parser.add_argument("email")
    parser.add_argument("--role", choices=ROLES, default="admin")
    parser.add_argument("--expires-minutes", type=int, default=None)
    args = parser.parse_args(argv)

    if "@" not in args.email:
        print("A valid email address is required.", file=sys.stderr)
        sys.exit(1)
    print(issue_token(args.email, args.role, args.expires_minutes))


if __name__ == "__main__":
    main()
