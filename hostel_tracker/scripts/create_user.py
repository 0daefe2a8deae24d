"""
Create a staff or management account.

    python -m hostel_tracker.scripts.create_user --role staff --name "Ravi" \
        --email ravi@example.com --password secret123 --phone 9876543210 \
        --hostel H1 --block A
"""

import argparse
import logging

from sqlmodel import Session, select

from hostel_tracker.core.logging_config import setup_logging
from hostel_tracker.db.db import commit, engine, init_db
from hostel_tracker.models.user import ROLES, User
from hostel_tracker.utils.auth_helper import hash_password

logger = logging.getLogger(__name__)


def create_user(session: Session, args) -> User:
    email = args.email.strip().lower()

    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        raise SystemExit(f"A user with email {email} already exists")

    user = User(
        name=args.name,
        email=email,
        password_hash=hash_password(args.password),
        phone=args.phone,
        role=args.role,
        hostel=args.hostel,
        block=args.block,
        room_number=args.room,
    )
    session.add(user)
    commit(session)
    session.refresh(user)
    return user


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create a hostel tracker account")
    parser.add_argument("--role", choices=ROLES, default="staff")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--phone", required=True)
    parser.add_argument("--hostel", required=True)
    parser.add_argument("--block", required=True)
    parser.add_argument("--room")
    args = parser.parse_args(argv)

    setup_logging()
    init_db()

    with Session(engine) as session:
        user = create_user(session, args)

    logger.info("Created %s account %s (%s)", user.role, user.email, user.public_id)


if __name__ == "__main__":
    main()
