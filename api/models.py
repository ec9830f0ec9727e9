"""
API request and response models for TaskGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

Request validation:
  Each request model is checked once, at the boundary, before any handler
  code runs. Field validators raise PydanticCustomError whose error type is
  already the client-facing code (INVALID_LENGTH, INVALID_FORMAT, ...), so
  api/validation.py can turn errors straight into fieldErrors entries.
  Field order matters: pydantic reports errors in declaration order. Auth
  bodies report only the first one; task bodies report all of them.
"""

import math
import re
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from auth.models import Role, User
from auth.passwords import MAX_PASSWORD_BYTES
from tasks.models import Task

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

USERNAME_MIN, USERNAME_MAX = 3, 50
PASSWORD_MIN = 6
TITLE_MIN, TITLE_MAX = 3, 100
PRIORITY_MIN, PRIORITY_MAX = 1, 5


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register.

    Checked in order username -> email -> password; the first failure is the
    one reported.
    """

    username: str
    email: str
    password: str

    @field_validator("username")
    @classmethod
    def check_username(cls, value: str) -> str:
        if not USERNAME_MIN <= len(value) <= USERNAME_MAX:
            raise PydanticCustomError("INVALID_LENGTH", "Username must be 3-50 characters long.")
        return value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise PydanticCustomError("INVALID_FORMAT", "Invalid email address format.")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < PASSWORD_MIN:
            raise PydanticCustomError("INVALID_LENGTH", "Password must be at least 6 characters long.")
        # bcrypt ignores everything past 72 bytes and current releases refuse it outright.
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise PydanticCustomError("INVALID_LENGTH", "Password must be at most 72 bytes long.")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /login. Both fields must be non-empty."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserPublic(BaseModel):
    """Public fields of an identity. Never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(id=user.id, username=user.username, email=user.email, role=user.role)


class AuthResponse(BaseModel):
    """Response body for POST /register and POST /login."""

    model_config = ConfigDict(frozen=True)

    user: UserPublic
    token: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskWrite(BaseModel):
    """Request body for POST /tasks and PUT /tasks/{id}.

    title, due_date and priority are checked on the raw JSON value so that
    an empty or null value reads as REQUIRED and a non-numeric priority as
    INVALID_VALUE, not as a type error.
    """

    title: str
    due_date: str
    priority: int
    description: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise PydanticCustomError("REQUIRED", "Title is required.")
        if len(value.strip()) < TITLE_MIN:
            raise PydanticCustomError("INVALID_LENGTH", "Title must be at least 3 characters long.")
        # The upper bound applies to the title as sent, surrounding whitespace included.
        if len(value) > TITLE_MAX:
            raise PydanticCustomError("INVALID_LENGTH", "Title must be at most 100 characters long.")
        return value.strip()

    @field_validator("due_date", mode="before")
    @classmethod
    def check_due_date(cls, value: Any) -> str:
        if value is None or value == "":
            raise PydanticCustomError("REQUIRED", "Due date is required.")
        if not isinstance(value, str) or not DATE_PATTERN.match(value):
            raise PydanticCustomError("INVALID_FORMAT", "Date must use the YYYY-MM-DD format.")
        try:
            parsed = date.fromisoformat(value)
        except ValueError:
            raise PydanticCustomError("INVALID_FORMAT", "Date must use the YYYY-MM-DD format.") from None
        if parsed < date.today():
            raise PydanticCustomError("INVALID_VALUE", "Due date cannot be in the past.")
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def check_priority(cls, value: Any) -> int:
        if value is None:
            raise PydanticCustomError("REQUIRED", "Priority is required.")
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = math.nan
        # Priorities are whole numbers; 2.5 is out of range like 0 or 6.
        if not number.is_integer() or not PRIORITY_MIN <= number <= PRIORITY_MAX:
            raise PydanticCustomError("INVALID_VALUE", "Priority must be a number from 1 to 5.")
        return int(number)

    @field_validator("description")
    @classmethod
    def normalize_description(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    def to_task(self) -> Task:
        return Task(title=self.title, due_date=self.due_date, priority=self.priority, description=self.description)


class TaskResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    due_date: str
    priority: int
    description: Optional[str]
    created_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            due_date=task.due_date,
            priority=task.priority,
            description=task.description,
            created_at=task.created_at,
        )


# ---------------------------------------------------------------------------
# Errors, health, stats
# ---------------------------------------------------------------------------


class FieldErrorModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Uniform error envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: str
    status: int
    error: str  # HTTP reason phrase
    field_errors: list[FieldErrorModel] = Field(default_factory=list, alias="fieldErrors")
    message: Optional[str] = None


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "ok"


class StatsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    users: int
