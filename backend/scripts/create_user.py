"""Create an account with an explicit role.

Registration only ever creates STUDENT accounts, so faculty, TA and admin
accounts are provisioned here:

    python backend/scripts/create_user.py --email prof@iiitnr.edu.in \
        --password secret123 --role FACULTY --name "Prof. X"
"""
import argparse
import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy import func  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from config import settings  # noqa: E402
from database import SessionLocal, init_db  # noqa: E402
from models.users import User, UserRole  # noqa: E402
from utils.hashing import get_password_hash  # noqa: E402


def create_user(db: Session, *, email: str, password: str, role: UserRole, name: str = None) -> User:
    email = email.strip().lower()
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise ValueError(f"User already exists: {email}")
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(f"password must be at least {settings.PASSWORD_MIN_LENGTH} characters")

    user = User(email=email, password_hash=get_password_hash(password), name=name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create an inventory user with a given role.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--role", required=True, type=str.upper, choices=[r.value for r in UserRole])
    parser.add_argument("--name", default=None)
    args = parser.parse_args(argv)

    init_db()
    session = SessionLocal()
    try:
        user = create_user(session, email=args.email, password=args.password,
                           role=UserRole(args.role), name=args.name)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        session.close()

    print(f"Created user {user.id}: {user.email} ({user.role.value})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
