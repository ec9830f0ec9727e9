"""
api/main.py -- FastAPI application entry point for TaskGate.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. CORSMiddleware    -- adds CORS headers for allowed browser origins
  2. SlowAPIMiddleware -- enforces per-route rate limits from api.limiter
  3. log_requests      -- one log line per request with latency

Lifespan opens the stores and the revocation registry on startup and closes
the stores on shutdown. Everything a request needs lives on app.state, so
tests can swap any of it by patching the lifespan (see tests/conftest.py).

Error mapping:
  Every failure leaves as the same JSON envelope,
  {timestamp, status, error, fieldErrors, message}, whether it came from a
  route (AppError), request parsing (RequestValidationError), routing
  (HTTPException), the rate limiter, or an unexpected exception.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, FieldErrorModel, HealthResponse, StatsResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.tasks import router as tasks_router
from api.validation import first_field_error
from auth.revocation import RevocationRegistry
from auth.store import UserStore
from core.config import get_settings
from core.errors import AppError, FieldError, ValidationError
from tasks.store import TaskStore

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taskgate.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The revocation registry is created here, not at import, so
    each app lifetime starts with an empty one.
    """
    logger.info("TaskGate API starting up")
    if _settings.using_default_secret:
        logger.warning("JWT_SECRET is unset -- using the insecure built-in signing key. Do not run this in production.")
    app.state.user_store = UserStore()
    app.state.task_store = TaskStore()
    app.state.revocations = RevocationRegistry()
    logger.info("Stores initialized (%s)", _settings.database_url.split("://", 1)[0])

    yield

    app.state.task_store.close()
    app.state.user_store.close()
    logger.info("TaskGate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="TaskGate API",
    description="Task management with session-based access control.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    # Credentials are needed for the token cookie on cross-origin requests.
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/users", tags=["Auth"])
# Older clients call the same endpoints under /api/auth.
app.include_router(auth_router, prefix="/api/auth", include_in_schema=False)
app.include_router(tasks_router, prefix="/api/tasks", tags=["Tasks"])


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


def error_response(
    status: int,
    field_errors: list[FieldError] | None = None,
    message: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the uniform error body for any status code."""
    try:
        reason = HTTPStatus(status).phrase
    except ValueError:
        reason = "Error"
    body = ErrorResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        status=status,
        error=reason,
        field_errors=[FieldErrorModel(**fe.to_dict()) for fe in field_errors or []],
        message=message,
    )
    return JSONResponse(status_code=status, content=body.model_dump(by_alias=True), headers=headers)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.field_errors, exc.message, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with the first failing field.

    Task bodies are validated inside their routes and report every field.
    """
    error = ValidationError([first_field_error(exc.errors())], "Request validation failed.")
    return error_response(error.status_code, error.field_errors, error.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes (404) and wrong methods (405) get the same envelope."""
    return error_response(exc.status_code, message=str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a rate limit is exceeded.

    Sync on purpose: SlowAPIMiddleware calls this handler directly without
    awaiting it.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    return error_response(429, message="Too many requests.", headers={"Retry-After": str(retry_after)})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error_response(500, message="An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Public endpoints
#
# Defined directly in main.py (not in a router) so they are always reachable
# regardless of router registration state. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness."""
    return HealthResponse()


@app.get("/api/public/stats", tags=["Public"])
def public_stats(request: Request) -> StatsResponse:
    """Return the number of registered users."""
    user_store: UserStore = request.app.state.user_store
    return StatsResponse(users=user_store.count_users())
