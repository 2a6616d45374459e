#!/usr/bin/env python3
"""
Inkwell -- a small authenticated note and blog service.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000 --reload
  python main.py create-user alice
  python main.py create-user alice --password password1

Environment variables:
  SECRET_KEY    Required. Signs session tokens; at least 32 characters.
  DATABASE_URL  Optional. SQLAlchemy URL (default: sqlite:///inkwell.db).
"""

import argparse
import getpass
import sys
from typing import Optional

from auth.passwords import hash_password
from auth.store import UserStore
from core.config import load_settings
from core.errors import ConfigurationError, DuplicateUsername, ValidationError
from core.validation import validate_registration


def create_user(username: str, password: str, database_url: Optional[str] = None) -> int:
    """Validate, hash and store one account. Returns a process exit code.

    Applies the same rules as the registration form. database_url overrides
    the configured DATABASE_URL.
    """
    try:
        username, password = validate_registration(username, password)
    except ValidationError as exc:
        for message in exc.messages:
            print(f"  [!] {message}")
        return 1

    if database_url is None:
        try:
            database_url = load_settings().database_url
        except ConfigurationError as exc:
            print(f"  [!] {exc}")
            return 2

    store = UserStore(database_url)
    try:
        user = store.create_user(username, hash_password(password))
    except DuplicateUsername:
        print(f"  [!] user {username!r} already exists")
        return 1
    finally:
        store.close()

    print(f"  Created user {user.username} ({user.id})")
    return 0


def serve(host: str, port: int, reload: bool) -> int:
    import uvicorn

    # Fail before binding the socket if the configuration is unusable.
    try:
        load_settings()
    except ConfigurationError as exc:
        print(f"  [!] {exc}")
        return 2
    uvicorn.run("asgi:app", host=host, port=port, reload=reload)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="inkwell",
        description="Authenticated note and blog service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  SECRET_KEY=... python main.py serve --reload
  SECRET_KEY=... python main.py create-user alice
        """,
    )
    sub = parser.add_subparsers(dest="command")

    serve_parser = sub.add_parser("serve", help="Run the web server (uvicorn asgi:app)")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")

    user_parser = sub.add_parser("create-user", help="Create an account from the command line")
    user_parser.add_argument("username", help="3-20 letters and numbers")
    user_parser.add_argument(
        "--password",
        default=None,
        help="8-18 characters. Prompted for when omitted (keeps it out of shell history).",
    )
    user_parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")

    args = parser.parse_args(argv)

    if args.command == "serve":
        return serve(args.host, args.port, args.reload)
    if args.command == "create-user":
        password = args.password if args.password is not None else getpass.getpass("Password: ")
        return create_user(args.username, password, database_url=args.database_url)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
