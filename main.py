#!/usr/bin/env python3
"""
TaskGate -- task management API with session-based access control.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 3000 --reload
  python main.py create-user alice alice@example.com
  python main.py create-user admin admin@example.com --role ADMIN --password 'secret123'
  python main.py delete-user 42

Environment variables:
  JWT_SECRET    Signing key for session tokens. Falls back to an insecure
                built-in default (with a warning) when unset.
  DATABASE_URL  SQLAlchemy URL of the user/task database.
"""

import argparse
import getpass
import sys
from typing import Optional

from pydantic import ValidationError

from api.models import RegisterRequest
from auth.models import Role, User
from auth.passwords import hash_password
from auth.store import UserStore
from core.errors import DuplicateIdentity


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_user(args: argparse.Namespace, store: Optional[UserStore] = None) -> int:
    """Create an identity from the command line, applying the same field rules as /register."""
    password = args.password or getpass.getpass("Password: ")
    try:
        body = RegisterRequest(username=args.username, email=args.email, password=password)
    except ValidationError as exc:
        first = exc.errors()[0]
        print(f"  [!] {first['loc'][0]}: {first['msg']}")
        return 2

    owned = store is None
    store = store or UserStore()
    try:
        user_id = store.create_user(
            User(
                username=body.username,
                email=body.email,
                hashed_password=hash_password(body.password),
                role=Role(args.role),
            )
        )
    except DuplicateIdentity as exc:
        print(f"  [!] {exc.message}" + (f" ({exc.field})" if exc.field else ""))
        return 1
    finally:
        if owned:
            store.close()
    print(f"Created {args.role} '{body.username}' (id: {user_id}).")
    return 0


def _delete_user(args: argparse.Namespace, store: Optional[UserStore] = None) -> int:
    owned = store is None
    store = store or UserStore()
    try:
        deleted = store.delete_user(args.user_id)
    finally:
        if owned:
            store.close()
    if not deleted:
        print(f"  [!] No user with id {args.user_id}.")
        return 1
    print(f"Deleted user {args.user_id}. Tokens already issued to it no longer authenticate.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskgate",
        description="TaskGate -- task management API with session-based access control.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only).")
    serve.set_defaults(func=_serve)

    create = sub.add_parser("create-user", help="Create a user without going through /register.")
    create.add_argument("username")
    create.add_argument("email")
    create.add_argument("--password", help="Prompted for when omitted.")
    create.add_argument("--role", choices=[r.value for r in Role], default=Role.USER.value)
    create.set_defaults(func=_create_user)

    delete = sub.add_parser("delete-user", help="Delete a user by id.")
    delete.add_argument("user_id", type=int)
    delete.set_defaults(func=_delete_user)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
