"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error. Direct bcrypt usage is simpler and has no
compatibility shim.

bcrypt only looks at the first 72 bytes of its input and current releases
raise on anything longer. api/models.py rejects such passwords with a 400
before they reach hash_password().

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import bcrypt

# Work factor: 2**10 rounds.
BCRYPT_ROUNDS = 10

MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    gensalt() draws a fresh random salt, so two calls with the same input
    return different digests.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw compares in constant time. A malformed digest (wrong
    prefix, truncated, not ASCII) makes checkpw raise ValueError; that is a
    failed match, not an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError, UnicodeEncodeError):
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Login verifies against it when the username
# does not exist, so an unknown user costs the same bcrypt work as a wrong
# password.
DUMMY_HASH: str = hash_password("taskgate_timing_dummy")
