"""
Validation utilities for input validation and error handling.
"""
import re
from typing import Any
from fastapi import HTTPException


VALID_ROLES = ("candidate", "recruiter")
WORKPLACE_TYPES = ("On-site", "Hybrid", "Remote")

_LINKEDIN_URL_RE = re.compile(r"^https?://(www\.)?linkedin\.com/(company|in|pub)/.+")


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"Missing required field: {field_name}")
        return None

    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a string")

    value = value.strip()

    if required and not value:
        raise HTTPException(status_code=400, detail=f"Missing required field: {field_name}")

    if not value:
        return None

    if len(value) < min_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_length} characters"
        )

    if len(value) > max_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_length} characters"
        )

    return value


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if not isinstance(value, int) or isinstance(value, bool):
        try:
            value = int(str(value).strip())
        except (ValueError, TypeError):
            raise HTTPException(status_code=400, detail=f"{field_name} must be a valid integer")

    if min_value is not None and value < min_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_value}"
        )

    if max_value is not None and value > max_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_value}"
        )

    return value


def validate_float_field(value: Any, field_name: str) -> float | None:
    """Optional non-negative number, as sent by HTML forms."""
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    try:
        number = float(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{field_name} must be a number")
    if number != number or number < 0:
        raise HTTPException(status_code=400, detail=f"{field_name} cannot be negative")
    return number


def validate_role(role: Any) -> str:
    """Validate user role."""
    if not role or not isinstance(role, str) or role not in VALID_ROLES:
        raise HTTPException(
            status_code=400,
            detail='Invalid role selected. Role must be either "candidate" or "recruiter".',
        )
    return role


def validate_workplace_type(value: str) -> str:
    if value not in WORKPLACE_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Invalid workplace_type. Must be On-site, Hybrid, or Remote",
        )
    return value


def is_valid_linkedin_url(url: str) -> bool:
    return bool(_LINKEDIN_URL_RE.match(url or ""))


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent directory traversal and other attacks."""
    if not filename:
        raise HTTPException(status_code=400, detail="Filename is required")

    # Remove any path separators
    filename = filename.replace("/", "_").replace("\\", "_")

    # Remove any null bytes
    filename = filename.replace("\x00", "")

    # Remove directory traversal sequences
    filename = filename.replace("..", "_")

    # Remove leading dots to prevent hidden files
    filename = filename.lstrip(".")

    # Ensure it's not too long
    if len(filename) > 255:
        raise HTTPException(status_code=400, detail="Filename too long")

    # Ensure it has some content
    if not filename or filename == "_":
        raise HTTPException(status_code=400, detail="Invalid filename")

    return filename
