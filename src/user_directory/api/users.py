"""User CRUD endpoints.

Each handler runs the same pipeline: validate the inbound data, call the
service, and format the outcome as an envelope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Body, Request, status
from fastapi.responses import JSONResponse

from user_directory.api.envelope import (
    error_response,
    failure_response,
    serialize_pagination,
    serialize_user,
    success_response,
)
from user_directory.domain.results import Failure
from user_directory.domain.validation import (
    parse_identifier,
    validate_create,
    validate_filters,
    validate_update,
)
from user_directory.services.users import USER_NOT_FOUND

if TYPE_CHECKING:
    from user_directory.containers import AppContainer
    from user_directory.services.users import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


def _user_service(request: Request) -> UserService:
    container: AppContainer = request.app.state.container
    return container.user_service


@router.get("")
def list_users(request: Request) -> JSONResponse:
    """Return a filtered, paginated list of users."""
    filters = validate_filters(request.query_params)
    if isinstance(filters, Failure):
        return failure_response(filters, "List users")
    result = _user_service(request).get_users(filters.value)
    if isinstance(result, Failure):
        return failure_response(result, "List users")
    page = result.value
    return success_response(
        "Users retrieved successfully",
        data=[serialize_user(user) for user in page.users],
        pagination=serialize_pagination(page),
    )


@router.get("/{user_id}")
def get_user(user_id: str, request: Request) -> JSONResponse:
    """Return a single user."""
    identifier = parse_identifier(user_id)
    if isinstance(identifier, Failure):
        return failure_response(identifier, "Get user")
    result = _user_service(request).get_user_by_id(identifier.value)
    if isinstance(result, Failure):
        return failure_response(result, "Get user")
    return success_response(
        "User retrieved successfully", data=serialize_user(result.value)
    )


@router.post("")
def create_user(
    request: Request,
    payload: Any = Body(default=None),  # noqa: ANN401
) -> JSONResponse:
    """Create a user."""
    data = validate_create(payload)
    if isinstance(data, Failure):
        return failure_response(data, "Create user")
    result = _user_service(request).create_user(data.value)
    if isinstance(result, Failure):
        return failure_response(result, "Create user")
    return success_response(
        "User created successfully",
        data=serialize_user(result.value),
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{user_id}")
def update_user(
    user_id: str,
    request: Request,
    payload: Any = Body(default=None),  # noqa: ANN401
) -> JSONResponse:
    """Apply a partial update to a user."""
    identifier = parse_identifier(user_id)
    if isinstance(identifier, Failure):
        return failure_response(identifier, "Update user")
    patch = validate_update({} if payload is None else payload)
    if isinstance(patch, Failure):
        return failure_response(patch, "Update user")
    result = _user_service(request).update_user(identifier.value, patch.value)
    if isinstance(result, Failure):
        return failure_response(result, "Update user")
    return success_response(
        "User updated successfully", data=serialize_user(result.value)
    )


@router.delete("/{user_id}")
def delete_user(user_id: str, request: Request) -> JSONResponse:
    """Delete a user."""
    identifier = parse_identifier(user_id)
    if isinstance(identifier, Failure):
        return failure_response(identifier, "Delete user")
    result = _user_service(request).delete_user(identifier.value)
    if isinstance(result, Failure):
        return failure_response(result, "Delete user")
    if not result.value:
        return error_response(status.HTTP_404_NOT_FOUND, USER_NOT_FOUND)
    return success_response("User deleted successfully")
