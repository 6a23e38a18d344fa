"""Validation and normalization of inbound user payloads.

Each validator collects every violated constraint before failing, so clients
receive the full list of problems in one response.
"""

import math
import re
from collections.abc import Mapping

from user_directory.domain.models import UserCreate, UserFilters, UserPatch
from user_directory.domain.results import ErrorKind, Failure, Ok

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
MIN_AGE = 0
MAX_AGE = 150
MAX_LIMIT = 100

VALIDATION_FAILED = "Validation failed"
INVALID_USER_ID = "Invalid user ID"


def is_valid_email(value: str) -> bool:
    """Return true when the value looks like local@domain.tld."""
    return EMAIL_PATTERN.match(value) is not None


def validate_create(payload: object) -> Ok[UserCreate] | Failure:
    """Validate and normalize a create payload."""
    data = payload if isinstance(payload, Mapping) else {}
    name = data.get("name")
    email = data.get("email")
    age = data.get("age")
    errors: list[str] = []

    if not _is_non_empty_string(name):
        errors.append("Name is required and must be a non-empty string")
    if not (isinstance(email, str) and is_valid_email(email.strip())):
        errors.append("Valid email is required")
    if not _is_valid_age(age):
        errors.append("Age must be a number between 0 and 150")

    if errors:
        return _validation_failure(errors)
    return Ok(
        UserCreate(
            name=name.strip(),
            email=email.strip().lower(),
            age=int(age),
        )
    )


def validate_update(payload: object) -> Ok[UserPatch] | Failure:
    """Validate and normalize a partial update payload.

    Only keys present in the payload are checked and returned; unknown keys
    are dropped.
    """
    if not isinstance(payload, Mapping):
        return _validation_failure(["Request body must be a JSON object"])
    errors: list[str] = []

    if "name" in payload and not _is_non_empty_string(payload["name"]):
        errors.append("Name must be a non-empty string")
    if "email" in payload and not (
        isinstance(payload["email"], str) and is_valid_email(payload["email"].strip())
    ):
        errors.append("Email must be valid")
    if "age" in payload and not _is_valid_age(payload["age"]):
        errors.append("Age must be a number between 0 and 150")

    if errors:
        return _validation_failure(errors)
    return Ok(
        UserPatch(
            name=payload["name"].strip() if "name" in payload else None,
            email=payload["email"].strip().lower() if "email" in payload else None,
            age=int(payload["age"]) if "age" in payload else None,
        )
    )


def validate_filters(query: Mapping[str, str]) -> Ok[UserFilters] | Failure:
    """Validate list filters taken from the query string."""
    errors: list[str] = []
    values: dict[str, object] = {}

    for key in ("name", "email"):
        text = (query.get(key) or "").strip()
        if text:
            values[key] = text

    for key, field_name in (("minAge", "min_age"), ("maxAge", "max_age")):
        if key in query:
            number = _parse_int(query[key])
            if number is None or number < 0:
                errors.append(f"{key} must be a non-negative integer")
            else:
                values[field_name] = number

    if "page" in query:
        page = _parse_int(query["page"])
        if page is None or page < 1:
            errors.append("page must be a positive integer")
        else:
            values["page"] = page

    if "limit" in query:
        limit = _parse_int(query["limit"])
        if limit is None or not 1 <= limit <= MAX_LIMIT:
            errors.append(f"limit must be an integer between 1 and {MAX_LIMIT}")
        else:
            values["limit"] = limit

    if errors:
        return _validation_failure(errors)
    return Ok(UserFilters(**values))


def parse_identifier(raw: str) -> Ok[int] | Failure:
    """Parse a user id taken from the request path."""
    number = _parse_int(raw)
    if number is None:
        return Failure(kind=ErrorKind.MALFORMED_IDENTIFIER, message=INVALID_USER_ID)
    return Ok(number)


def _is_non_empty_string(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_valid_age(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    if not math.isfinite(value):
        return False
    return MIN_AGE <= value <= MAX_AGE


def _parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    text = raw.strip()
    if INTEGER_PATTERN.fullmatch(text) is None:
        return None
    return int(text)


def _validation_failure(errors: list[str]) -> Failure:
    return Failure(
        kind=ErrorKind.VALIDATION,
        message=VALIDATION_FAILED,
        errors=tuple(errors),
    )
