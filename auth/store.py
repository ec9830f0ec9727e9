"""
auth/store.py -- SQLAlchemy Core persistence layer for user identities.

Pattern: Repository + Data Mapper (same as tasks/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  username and email carry UNIQUE constraints. They are the source of truth
  for duplicate detection: two concurrent registrations with the same
  username both pass the route's pre-check, but only one INSERT succeeds.
  The loser's IntegrityError is translated into DuplicateIdentity here, so
  callers never see a raw storage error.

Ids:
  sqlite_autoincrement=True makes SQLite use AUTOINCREMENT, so ids are
  monotonically increasing and never reused, even after a delete.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from core.config import get_settings
from core.db import make_engine
from core.errors import DuplicateIdentity

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(20), nullable=False, server_default=Role.USER.value),
    Column("created_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _duplicate_field(exc: IntegrityError) -> str | None:
    """Work out which UNIQUE column an IntegrityError refers to.

    SQLite reports "UNIQUE constraint failed: users.email"; Postgres names
    the constraint or the key. Returns None when the message names neither.
    """
    text = str(exc.orig).lower()
    if "email" in text:
        return "email"
    if "username" in text:
        return "username"
    return None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User identities.

    Usage:
        store = UserStore()
        uid = store.create_user(User(username="alice", email="alice@x.com", hashed_password=hash_password("secret1")))
        user = store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises DuplicateIdentity if the username or email is already taken,
        including when a concurrent insert won the race after the caller's
        pre-check.
        """
        with self.engine.connect() as conn:
            try:
                result = conn.execute(
                    _users.insert().values(
                        username=user.username,
                        email=user.email,
                        password_hash=user.hashed_password,
                        role=Role(user.role).value,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                raise DuplicateIdentity(field=_duplicate_field(exc)) from exc
            return result.inserted_primary_key[0]

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Tokens already issued to the user stay cryptographically valid; the
        session gate treats them as unauthenticated once the lookup misses.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Point lookups
    # ------------------------------------------------------------------

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        """Return the number of registered users (public stats endpoint)."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.password_hash,
        role=Role(row.role),
        created_at=row.created_at,
    )
