"""
auth/tokens.py -- JWT issuance and verification, user authentication, cookie helper.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the user id as the `sub` claim
       plus `iat`, `exp` and a random `jti`; nothing else about the user is embedded, so the
       identity is re-read from the store on every request. Verification
       returns None on any failure -- the session gate turns that into a 401.

  Expiry: fixed window of Settings.token_expire_seconds (7 days). The cookie
       set by set_auth_cookie() uses the same max_age so both expire together.

  Signing key: Settings.jwt_secret. When JWT_SECRET is unset the settings
       layer falls back to a built-in default and logs a warning; see
       core/config.py.

Layer rule: no imports from api/ or tasks/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import ExpiredSignatureError, JWTError, jwt

from auth.models import TokenClaims
from auth.passwords import DUMMY_HASH, verify_password
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("taskgate.auth")

_ALGORITHM = "HS256"

COOKIE_NAME = "token"


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, issued_at: datetime | None = None) -> str:
    """Encode a signed JWT for the given user id.

    Args:
        user_id:   Numeric user ID stored in the DB; becomes the `sub` claim.
        issued_at: Issue time. Defaults to now (UTC). Expiry is always
                   issued_at + Settings.token_expire_seconds.
    """
    settings = get_settings()
    issued = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": issued,
        "exp": issued + timedelta(seconds=settings.token_expire_seconds),
        # Two logins in the same second must still yield distinct tokens,
        # otherwise revoking one would revoke both.
        "jti": secrets.token_hex(16),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims | None:
    """Verify a JWT's signature and expiry. Returns its claims or None on any failure.

    Malformed tokens, bad signatures, expired tokens and tokens without a
    numeric subject all yield None. The reason is logged at debug level only.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[_ALGORITHM])
    except ExpiredSignatureError:
        logger.debug("Token rejected: expired")
        return None
    except JWTError as exc:
        logger.debug("Token rejected: %s", exc)
        return None

    sub = payload.get("sub")
    exp = payload.get("exp")
    if not isinstance(sub, str) or not sub.isdigit() or exp is None:
        logger.debug("Token rejected: missing or non-numeric subject")
        return None
    # jose only rejects exp < now; the expiry second itself is already outside the window.
    if int(exp) <= int(time.time()):
        logger.debug("Token rejected: expired")
        return None
    return TokenClaims(user_id=int(sub), issued_at=int(payload.get("iat", 0)), expires_at=int(exp))


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Authenticate a username/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure. Callers must answer
    both failure cases with the same response.
    """
    user = store.get_by_username(username)
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str) -> None:
    """Write the JWT as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the JWT expiry so both expire together.
    """
    settings = get_settings()
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.token_expire_seconds,
    )


def clear_auth_cookie(response) -> None:
    settings = get_settings()
    response.delete_cookie(COOKIE_NAME, httponly=True, samesite="lax", secure=settings.secure_cookies)
