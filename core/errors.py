"""
core/errors.py -- Application error taxonomy.

Every failure a client can observe is one of the AppError subclasses below.
Stores and route handlers raise them; api/main.py maps each one onto the
uniform error body {timestamp, status, error, fieldErrors, message}.

AuthenticationFailure is deliberately coarse toward the client: missing
token, bad signature, expired token, revoked token, deleted subject and bad
credentials all serialize to the same 401. The `reason` attribute exists for
server-side logging only and is never written to a response.

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class FieldError:
    """One entry of the fieldErrors array."""

    field: str
    code: str  # REQUIRED | INVALID_LENGTH | INVALID_FORMAT | INVALID_VALUE | INVALID_TYPE | DUPLICATE
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str | None = None, field_errors: list[FieldError] | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message
        self.field_errors: list[FieldError] = list(field_errors or [])


class ValidationError(AppError):
    """Malformed or missing input. Always carries at least one field error."""

    status_code = 400

    def __init__(self, field_errors: list[FieldError], message: str | None = None) -> None:
        if not field_errors:
            raise ValueError("ValidationError requires at least one field error")
        super().__init__(message, field_errors)


class DuplicateIdentity(AppError):
    """A username or email is already taken."""

    status_code = 409

    def __init__(self, field: str | None = None, message: str | None = None) -> None:
        field_errors = []
        if field is not None:
            field_errors.append(FieldError(field=field, code="DUPLICATE", message=f"That {field} is already taken."))
        super().__init__(message or "User already exists.", field_errors)
        self.field = field


class AuthenticationFailure(AppError):
    """Any failed authentication. `reason` is for logs only."""

    status_code = 401

    def __init__(self, reason: str, message: str = "Authentication required.") -> None:
        super().__init__(message)
        self.reason = reason


class NotFound(AppError):
    status_code = 404


class InternalError(AppError):
    """Unexpected store or hashing failure. The client sees a generic message."""

    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred.") -> None:
        super().__init__(message)
