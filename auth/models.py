"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these only own the shape.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass
class User:
    """A registered identity.

    hashed_password is the bcrypt digest; the plaintext never reaches this
    object. id is None until the store assigns one on insert.
    """

    username: str
    email: str
    hashed_password: str
    role: Role = Role.USER
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of an access token."""

    user_id: int
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class Session:
    """Result of a request passing the session gate.

    user is None only for gates created with resolve_user=False; /me does its
    own lookup so it can answer 404 for a deleted identity.
    """

    user_id: int
    token: str
    user: User | None = None
