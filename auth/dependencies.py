"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication (the session gate).

Per-request states:
  no token                  -> 401, verification is never attempted
  token present             -> verify signature + expiry
  verification fails        -> 401
  token on revocation list  -> 401
  otherwise                 -> authenticated; user id and token attached to
                               request.state, Session returned to the handler

Token sources, in priority order (exactly one is used):
  1. Cookie "token" -- set by register/login.
  2. Authorization: Bearer <token> header -- API clients.

Every rejection raises AuthenticationFailure with an internal reason. The
reason is logged; the client only ever sees the generic 401 body.

Gates:
  require_session       -- generic protected routes (tasks). Also resolves
                           the subject; a deleted user is unauthenticated.
  require_session_token -- /me. Skips the user lookup so the handler can
                           answer 404 for a deleted identity.
  require_logout_token  -- /logout. Tolerates an already-revoked token so a
                           repeated logout is a no-op instead of a 401.

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

import logging

from fastapi import Request

from auth.models import Session
from auth.revocation import RevocationRegistry
from auth.store import UserStore
from auth.tokens import COOKIE_NAME, decode_access_token
from core.errors import AuthenticationFailure

logger = logging.getLogger("taskgate.auth")


def extract_token(request: Request) -> str | None:
    """Return the token presented with the request, or None.

    The cookie wins when both sources are present; the header is only read
    when there is no cookie.
    """
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


class SessionGate:
    """Callable FastAPI dependency that authenticates a request.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(session: Session = Depends(require_session)): ...

    or on a whole router:
        router = APIRouter(dependencies=[Depends(require_session)])
    """

    def __init__(self, *, resolve_user: bool = True, allow_revoked: bool = False) -> None:
        self.resolve_user = resolve_user
        self.allow_revoked = allow_revoked

    def __call__(self, request: Request) -> Session:
        token = extract_token(request)
        if token is None:
            raise self._reject(request, "missing_token")

        claims = decode_access_token(token)
        if claims is None:
            raise self._reject(request, "invalid_token")

        revocations: RevocationRegistry = request.app.state.revocations
        if not self.allow_revoked and revocations.is_revoked(token):
            raise self._reject(request, "revoked_token")

        user = None
        if self.resolve_user:
            user_store: UserStore = request.app.state.user_store
            user = user_store.get_by_id(claims.user_id)
            if user is None:
                raise self._reject(request, "unknown_subject")

        request.state.user_id = claims.user_id
        request.state.token = token
        return Session(user_id=claims.user_id, token=token, user=user)

    @staticmethod
    def _reject(request: Request, reason: str) -> AuthenticationFailure:
        logger.info("Authentication rejected (%s) on %s %s", reason, request.method, request.url.path)
        return AuthenticationFailure(reason)


require_session = SessionGate()
require_session_token = SessionGate(resolve_user=False)
require_logout_token = SessionGate(resolve_user=False, allow_revoked=True)
