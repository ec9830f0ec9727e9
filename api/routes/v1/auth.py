"""
api/routes/v1/auth.py -- Registration, login, logout and whoami endpoints.

Routes (mounted under /api/users, aliased under /api/auth):
  POST /register -- create identity; sets token cookie; 201
  POST /login    -- password login; sets token cookie; 200
  POST /logout   -- revoke presented token, clear cookie (requires auth)
  GET  /me       -- current identity (requires auth)

Security:
  Register and login are rate-limited per client IP (AUTH_RATE_LIMIT).
  authenticate_user() provides timing equalization -- use it, never inline.
  Login answers an unknown username and a wrong password with the same 401.
  Cache-Control: no-store on every response that carries a token.

Failure ordering for register: field validation (400, done by RegisterRequest
before the handler runs) -> duplicate username/email (409) -> server error (500).
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.limiter import limiter
from api.models import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, UserPublic
from auth.dependencies import require_logout_token, require_session_token
from auth.models import Role, Session, User
from auth.passwords import hash_password
from auth.revocation import RevocationRegistry
from auth.store import UserStore
from auth.tokens import authenticate_user, clear_auth_cookie, create_access_token, set_auth_cookie
from core.config import get_settings
from core.errors import AuthenticationFailure, DuplicateIdentity, InternalError, NotFound

logger = logging.getLogger("taskgate.auth")


def _auth_rate_limit() -> str:
    """Read per request so the limit follows the current settings."""
    return get_settings().auth_rate_limit


# Auth policy:
# - POST /register: public
# - POST /login:    public
# - POST /logout:   requires a validly signed, unexpired token (already-revoked is accepted)
# - GET  /me:       requires an unrevoked token; 404 if the identity is gone
router = APIRouter()


def _issue_session(user: User, status_code: int) -> JSONResponse:
    """Issue a token for user and wrap it in the register/login response."""
    token = create_access_token(user.id)
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(user=UserPublic.from_user(user), token=token).model_dump(mode="json"),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit(_auth_rate_limit)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a new identity and start a session for it.

    The username/email pre-checks only produce friendlier 409s. The UNIQUE
    constraints in the store decide; a registration that loses a race after
    the pre-check still gets DuplicateIdentity from create_user().
    """
    user_store: UserStore = request.app.state.user_store

    try:
        if user_store.get_by_username(body.username) is not None:
            raise DuplicateIdentity(field="username", message="Username is already taken.")
        if user_store.get_by_email(body.email) is not None:
            raise DuplicateIdentity(field="email", message="Email is already registered.")

        user = User(
            username=body.username,
            email=body.email,
            hashed_password=hash_password(body.password),
            role=Role.USER,
        )
        user.id = user_store.create_user(user)
    except SQLAlchemyError as exc:
        logger.error("Registration failed for %r: %s", body.username, exc)
        raise InternalError() from exc
    except ValueError as exc:
        # bcrypt rejects inputs it cannot hash
        logger.error("Password hashing failed during registration: %s", exc)
        raise InternalError() from exc

    logger.info("Registered user id=%d username=%r", user.id, user.username)
    return _issue_session(user, status_code=201)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(_auth_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; set the token cookie.

    Uses authenticate_user() which includes timing equalization. Do NOT
    inline get_by_username() + verify_password() -- that re-introduces the
    timing attack.
    """
    user_store: UserStore = request.app.state.user_store
    try:
        user = authenticate_user(user_store, body.username, body.password)
    except SQLAlchemyError as exc:
        logger.error("Login lookup failed: %s", exc)
        raise InternalError() from exc

    if user is None:
        logger.info("Login failed for username=%r", body.username)
        raise AuthenticationFailure("bad_credentials", message="Invalid credentials.")

    return _issue_session(user, status_code=200)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, session: Session = Depends(require_logout_token)) -> JSONResponse:
    """Revoke the presented token and clear the cookie.

    Revoking an already-revoked token is a no-op, so logging out twice with
    the same token succeeds both times.
    """
    revocations: RevocationRegistry = request.app.state.revocations
    revocations.revoke(session.token)
    resp = JSONResponse(content=MessageResponse(message="Logged out successfully.").model_dump())
    clear_auth_cookie(resp)
    return resp


@router.get("/me", response_model=UserPublic)
def me(request: Request, session: Session = Depends(require_session_token)) -> UserPublic:
    """Return the public fields of the authenticated identity."""
    revocations: RevocationRegistry = request.app.state.revocations
    # The gate has already checked this; /me checks again on its own.
    if revocations.is_revoked(session.token):
        raise AuthenticationFailure("revoked_token", message="Session has expired.")

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(session.user_id)
    if user is None:
        raise NotFound("User not found.")
    return UserPublic.from_user(user)
