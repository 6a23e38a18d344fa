"""JSON envelope helpers shared by every endpoint."""

import logging
from datetime import datetime

from fastapi import status
from fastapi.responses import JSONResponse

from user_directory.domain.models import UserPage, UserRecord
from user_directory.domain.results import ErrorKind, Failure

logger = logging.getLogger(__name__)

INTERNAL_SERVER_ERROR = "Internal server error"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

_FAILURE_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_EMAIL: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NO_FIELDS_TO_UPDATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MALFORMED_IDENTIFIER: status.HTTP_400_BAD_REQUEST,
}


def envelope(
    success: bool,
    message: str,
    *,
    data: object | None = None,
    errors: list[str] | None = None,
    pagination: dict[str, int] | None = None,
) -> dict[str, object]:
    """Build the response body, omitting absent optional members."""
    body: dict[str, object] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    if errors is not None:
        body["errors"] = errors
    if pagination is not None:
        body["pagination"] = pagination
    return body


def success_response(
    message: str,
    *,
    data: object | None = None,
    pagination: dict[str, int] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Return a successful envelope."""
    return JSONResponse(
        status_code=status_code,
        content=envelope(True, message, data=data, pagination=pagination),
    )


def error_response(
    status_code: int, message: str, errors: list[str] | None = None
) -> JSONResponse:
    """Return a failed envelope.

    Security headers are set here as well because the catch-all 500 handler
    runs outside the HTTP middleware stack.
    """
    return JSONResponse(
        status_code=status_code,
        content=envelope(False, message, errors=errors),
        headers=SECURITY_HEADERS,
    )


def failure_response(failure: Failure, operation: str) -> JSONResponse:
    """Translate a failure into its HTTP status and envelope.

    Unexpected failures are logged with their cause and reported to the
    client with a generic message only.
    """
    status_code = _FAILURE_STATUS.get(failure.kind)
    if status_code is None:
        logger.error(
            "%s failed: %s",
            operation,
            failure.message,
            exc_info=failure.cause,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_SERVER_ERROR
        )
    errors = list(failure.errors) if failure.kind is ErrorKind.VALIDATION else None
    return error_response(status_code, failure.message, errors)


def serialize_user(user: UserRecord) -> dict[str, object]:
    """Return the wire representation of a user."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "age": user.age,
        "createdAt": _isoformat(user.created_at),
        "updatedAt": _isoformat(user.updated_at),
    }


def serialize_pagination(page: UserPage) -> dict[str, int]:
    return {
        "page": page.page,
        "limit": page.limit,
        "total": page.total,
        "totalPages": page.total_pages,
    }


def _isoformat(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
