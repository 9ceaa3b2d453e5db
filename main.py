#!/usr/bin/env python3
"""
Identity service -- user registration, password login, and bearer tokens.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000
  python main.py create-user admin@example.com --first-name Ada --last-name Lovelace
  python main.py list-users

Environment variables (see core/config.py):
  SECRET_KEY            Token signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL          SQLAlchemy URL for the user table (default: SQLite next to auth/).
  TOKEN_EXPIRE_SECONDS  Access token lifetime (default: 3600).
  BCRYPT_ROUNDS         bcrypt work factor, 4-31 (default: 12).
"""

import argparse
import getpass
import sys
from typing import Optional

from auth.errors import IdentityError
from auth.wiring import build_identity
from core.config import get_settings


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _read_password(password: Optional[str]) -> Optional[str]:
    """Prompt twice for a password unless one was supplied programmatically."""
    if password is not None:
        return password
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Confirm password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    return first


def _cmd_create_user(args: argparse.Namespace, password: Optional[str] = None) -> int:
    password = _read_password(password)
    if password is None:
        return 1
    identity = build_identity(get_settings())
    try:
        user = identity.directory.create(args.email, args.first_name, args.last_name, password)
    except IdentityError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        identity.close()
    print(f"  Created {user.email} ({user.id})")
    return 0


def _cmd_list_users(args: argparse.Namespace) -> int:
    identity = build_identity(get_settings())
    try:
        users = identity.directory.list_all()
    except IdentityError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        identity.close()
    if not users:
        print("  No users.")
        return 0
    for user in users:
        print(f"  {user.id}  {user.email:<40} {user.first_name} {user.last_name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="identity",
        description="User registration, password login, and bearer token issuance.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-user admin@example.com --first-name Ada --last-name Lovelace
  DATABASE_URL=sqlite:///users.db python main.py list-users
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")

    create = sub.add_parser("create-user", help="Create a user; the password is prompted for")
    create.add_argument("email", help="Email address (stored lower-cased)")
    create.add_argument("--first-name", required=True, metavar="NAME")
    create.add_argument("--last-name", required=True, metavar="NAME")

    sub.add_parser("list-users", help="Print every user")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        return _cmd_serve(args)
    if args.command == "create-user":
        return _cmd_create_user(args)
    if args.command == "list-users":
        return _cmd_list_users(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
