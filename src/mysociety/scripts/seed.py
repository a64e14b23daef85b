"""Create administrator and resident accounts from the command line.

Examples:
    python -m mysociety.scripts.seed admin --username admin --password secret
    python -m mysociety.scripts.seed resident --username a101 --password secret \
        --name "Asha Rao" --flat A-101 --email asha@example.com
"""
from __future__ import annotations

import argparse
import sys

from sqlalchemy.orm import Session

from mysociety.core.security import hash_key
from mysociety.db.session import SessionLocal, create_tables
from mysociety.models import Resident, User, UserRole
from mysociety.repositories.resident_repo import ResidentDirectory


def create_admin(db: Session, username: str, password: str) -> User:
    """Persist an administrator account."""
    user = User(username=username, password_hash=hash_key(password), role=UserRole.ADMIN)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_resident(
    db: Session,
    *,
    username: str,
    password: str,
    name: str,
    flat_number: str,
    email: str | None = None,
    phone: str | None = None,
) -> User:
    """Persist a resident household together with its login account."""
    resident = Resident(name=name, flat_number=flat_number, email=email, phone=phone)
    db.add(resident)
    db.flush()
    user = User(
        username=username,
        password_hash=hash_key(password),
        role=UserRole.RESIDENT,
        resident_id=resident.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed mySociety accounts")
    parser.add_argument("--create-tables", action="store_true", help="Create tables before seeding")
    sub = parser.add_subparsers(dest="kind", required=True)

    admin = sub.add_parser("admin", help="Create an administrator")
    admin.add_argument("--username", required=True)
    admin.add_argument("--password", required=True)

    resident = sub.add_parser("resident", help="Create a resident and their account")
    resident.add_argument("--username", required=True)
    resident.add_argument("--password", required=True)
    resident.add_argument("--name", required=True)
    resident.add_argument("--flat", required=True, dest="flat_number")
    resident.add_argument("--email")
    resident.add_argument("--phone")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.create_tables:
        create_tables()

    with SessionLocal() as db:
        directory = ResidentDirectory(db)
        if directory.get_user_by_username(args.username) is not None:
            print(f"User {args.username!r} already exists", file=sys.stderr)
            return 1

        if args.kind == "admin":
            user = create_admin(db, args.username, args.password)
        else:
            if directory.get_by_flat_number(args.flat_number) is not None:
                print(f"Flat {args.flat_number!r} already has a resident", file=sys.stderr)
                return 1
            user = create_resident(
                db,
                username=args.username,
                password=args.password,
                name=args.name,
                flat_number=args.flat_number,
                email=args.email,
                phone=args.phone,
            )
    print(f"Created {user.role.value.lower()} {args.username!r} (user id {user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
