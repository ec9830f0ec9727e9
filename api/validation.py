"""
api/validation.py -- Pydantic errors -> client-facing FieldError entries.

Two reporting policies:
  first_field_error()   -- register, login, path params: only the first
                           failing field (declaration order) is reported.
  validate_task_body()  -- task create/update: every failing field is
                           reported together.

Custom validators in api/models.py raise PydanticCustomError whose type is
already the client-facing code (INVALID_LENGTH, ...). Pydantic's built-in
error types are translated through _PYDANTIC_CODES.
"""

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from api.models import TaskWrite
from core.errors import FieldError, ValidationError

_PYDANTIC_CODES: dict[str, str] = {
    "missing": "REQUIRED",
    "string_too_short": "INVALID_LENGTH",
    "string_too_long": "INVALID_LENGTH",
    "json_invalid": "INVALID_FORMAT",
    "int_parsing": "INVALID_TYPE",
    "int_from_float": "INVALID_TYPE",
    "int_type": "INVALID_TYPE",
    "string_type": "INVALID_TYPE",
    "model_attributes_type": "INVALID_TYPE",
    "model_type": "INVALID_TYPE",
    "dict_type": "INVALID_TYPE",
}

# Path parameter names -> the field name clients know.
_FIELD_ALIASES: dict[str, str] = {"task_id": "id"}


def to_field_error(err: dict) -> FieldError:
    """Translate one pydantic error dict into a FieldError."""
    loc = [part for part in err.get("loc", ()) if isinstance(part, str)]
    # ("body", "title") -> "title"; ("body",) -> "body"
    field = loc[-1] if loc else "body"
    field = _FIELD_ALIASES.get(field, field)

    err_type = err.get("type", "")
    if err_type.isupper():
        code = err_type
    elif err_type == "string_too_short" and (err.get("ctx") or {}).get("min_length") == 1:
        code = "REQUIRED"
    else:
        code = _PYDANTIC_CODES.get(err_type, "INVALID_VALUE")

    if code == "REQUIRED":
        message = f"Field '{field}' is required."
    else:
        message = err.get("msg", "Invalid value.")
    return FieldError(field=field, code=code, message=message)


def first_field_error(errors: list[dict]) -> FieldError:
    return to_field_error(errors[0])


def validate_task_body(payload: Optional[Any]) -> TaskWrite:
    """Validate a raw task body, reporting every failing field at once.

    Raises core.errors.ValidationError (400) with one FieldError per field.
    """
    try:
        return TaskWrite.model_validate(payload if payload is not None else {})
    except PydanticValidationError as exc:
        field_errors = [to_field_error(err) for err in exc.errors()]
        raise ValidationError(field_errors, "Request validation failed.") from exc
