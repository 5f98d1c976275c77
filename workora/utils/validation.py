"""
Validation utilities for request input.
"""
from enum import Enum
from typing import Any

from .error_handlers import ValidationError


class ApplicationStatus(str, Enum):
    SUBMITTED = "Submitted"
    REJECTED = "Rejected"
    HIRED = "Hired"


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def require_fields(message: str, **fields: Any) -> None:
    """Raise a 400 with `message` if any of the given fields is missing or blank."""
    if any(is_blank(v) for v in fields.values()):
        raise ValidationError(message)


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field."""
    if is_blank(value):
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a valid integer")
    if not isinstance(value, int):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise ValidationError(f"{field_name} must be a valid integer") from None

    if min_value is not None and value < min_value:
        raise ValidationError(f"{field_name} must be at least {min_value}")

    if max_value is not None and value > max_value:
        raise ValidationError(f"{field_name} must not exceed {max_value}")

    return value


def validate_application_status(status: str | None) -> ApplicationStatus:
    if is_blank(status):
        raise ValidationError("Status is required")
    normalized = status.strip().capitalize()
    try:
        return ApplicationStatus(normalized)
    except ValueError:
        valid = ", ".join(s.value for s in ApplicationStatus)
        raise ValidationError(f"Invalid status. Must be one of: {valid}") from None


def clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
