#!/usr/bin/env python3
"""
Sign-in service management CLI.

Users are created out-of-band; this is that band. The sign-in command runs
the same flow as POST /api/v1/auth/sign-in and prints the same JSON body,
which is handy for smoke-testing a deployment's database.

Usage:
  python main.py create-user alice
  python main.py create-user alice --password Secret12
  python main.py sign-in alice
  python main.py sign-in alice --password Secret12

Environment variables:
  DATABASE_URL    SQLAlchemy URL of the auth database (default: auth/signin.db)
  BCRYPT_ROUNDS   bcrypt cost factor for new hashes (default: 12)
"""

import argparse
import getpass
import json
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from api.models import SignInResponse
from auth.passwords import hash_password
from auth.signin import sign_in
from auth.store import AuthStore
from core.validation import validate_credentials


def _read_password(supplied: Optional[str], confirm: bool) -> str:
    """Return --password if given, otherwise prompt without echo."""
    if supplied is not None:
        return supplied
    password = getpass.getpass("Password: ")
    if confirm and getpass.getpass("Repeat password: ") != password:
        raise ValueError("Passwords do not match.")
    return password


def _create_user(store: AuthStore, username: str, password: str) -> int:
    invalid = validate_credentials(username, password)
    if invalid is not None:
        print(f"  [!] Rejected: {invalid.name}", file=sys.stderr)
        return 1
    try:
        user_id = store.create_user(username, hash_password(password))
    except IntegrityError:
        print(f"  [!] User '{username}' already exists.", file=sys.stderr)
        return 1
    print(f"Created user '{username}' ({user_id}).")
    return 0


def _sign_in(store: AuthStore, username: str, password: str) -> int:
    result = sign_in(store, username, password)
    print(json.dumps(SignInResponse.from_result(result).to_body()))
    return 0 if result.ok else 1


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Manage sign-in users and exercise the sign-in flow.",
    )
    parser.add_argument(
        "--db-url",
        metavar="URL",
        help="SQLAlchemy database URL (overrides DATABASE_URL)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create-user", help="Create a user that can sign in")
    create.add_argument("username")
    create.add_argument("--password", help="Password (prompted for if omitted)")

    login = subparsers.add_parser("sign-in", help="Sign in and print the JSON response")
    login.add_argument("username")
    login.add_argument("--password", help="Password (prompted for if omitted)")

    args = parser.parse_args(argv)

    try:
        password = _read_password(args.password, confirm=args.command == "create-user")
    except ValueError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 1

    try:
        store = AuthStore(db_url=args.db_url)
    except SQLAlchemyError as e:
        print(f"  [!] Could not open the auth database: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "create-user":
            return _create_user(store, args.username, password)
        return _sign_in(store, args.username, password)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
