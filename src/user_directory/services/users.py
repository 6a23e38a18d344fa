"""User-related business logic."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from user_directory.domain.models import (
    UserCreate,
    UserFilters,
    UserPage,
    UserPatch,
    UserRecord,
)
from user_directory.domain.results import (
    ConstraintViolation,
    ErrorKind,
    Failure,
    Ok,
    StorageError,
)

USER_NOT_FOUND = "User not found"
EMAIL_ALREADY_EXISTS = "Email already exists"
NO_FIELDS_TO_UPDATE = "No fields to update"
STORAGE_FAILURE = "Storage operation failed"

TIMESTAMP_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

_USER_COLUMNS = "id, name, email, age, createdAt, updatedAt"
_LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of a write statement."""

    last_insert_id: int | None
    rows_affected: int


class Database(Protocol):
    """Storage accessor interface used by the service."""

    def execute(
        self, statement: str, params: Mapping[str, object] | None = None
    ) -> ExecuteResult:
        """Run a write statement."""

    def query_one(
        self, statement: str, params: Mapping[str, object] | None = None
    ) -> dict[str, object] | None:
        """Return the first matching row, if present."""

    def query_all(
        self, statement: str, params: Mapping[str, object] | None = None
    ) -> list[dict[str, object]]:
        """Return all matching rows."""


@dataclass
class UserService:
    """Application service for user lifecycle actions.

    Every operation returns ``Ok`` or a ``Failure`` tagged with its kind;
    storage errors are reported as ``STORAGE_FAILURE`` with the original
    exception attached.
    """

    database: Database

    def create_user(self, data: UserCreate) -> Ok[UserRecord] | Failure:
        """Insert a new user and return the stored record."""
        try:
            if self._email_taken(data.email):
                return _duplicate_email()
            result = self.database.execute(
                "INSERT INTO users (name, email, age) VALUES (:name, :email, :age)",
                {"name": data.name, "email": data.email, "age": data.age},
            )
        except ConstraintViolation:
            return _duplicate_email()
        except StorageError as exc:
            return _storage_failure(exc)
        return self.get_user_by_id(result.last_insert_id)

    def get_user_by_id(self, user_id: int) -> Ok[UserRecord] | Failure:
        """Return a user by id."""
        try:
            row = self.database.query_one(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = :id", {"id": user_id}
            )
        except StorageError as exc:
            return _storage_failure(exc)
        if row is None:
            return Failure(kind=ErrorKind.NOT_FOUND, message=USER_NOT_FOUND)
        return Ok(_row_to_user(row))

    def get_users(self, filters: UserFilters) -> Ok[UserPage] | Failure:
        """Return one page of users matching the filters, newest first."""
        conditions: list[str] = []
        params: dict[str, object] = {}
        if filters.name:
            conditions.append(f"name LIKE :name ESCAPE '{_LIKE_ESCAPE}'")
            params["name"] = _contains_pattern(filters.name)
        if filters.email:
            conditions.append(f"email LIKE :email ESCAPE '{_LIKE_ESCAPE}'")
            params["email"] = _contains_pattern(filters.email)
        if filters.min_age is not None:
            conditions.append("age >= :min_age")
            params["min_age"] = filters.min_age
        if filters.max_age is not None:
            conditions.append("age <= :max_age")
            params["max_age"] = filters.max_age
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        try:
            count_row = self.database.query_one(
                f"SELECT COUNT(*) AS total FROM users {where}", params
            )
            rows = self.database.query_all(
                f"SELECT {_USER_COLUMNS} FROM users {where} "
                "ORDER BY createdAt DESC, id DESC LIMIT :limit OFFSET :offset",
                {**params, "limit": filters.limit, "offset": filters.offset},
            )
        except StorageError as exc:
            return _storage_failure(exc)
        total = int(count_row["total"]) if count_row else 0
        return Ok(
            UserPage(
                users=[_row_to_user(row) for row in rows],
                total=total,
                page=filters.page,
                limit=filters.limit,
            )
        )

    def update_user(self, user_id: int, patch: UserPatch) -> Ok[UserRecord] | Failure:
        """Apply the provided fields to a user and return the updated record."""
        changes = patch.changes()
        if not changes:
            return Failure(
                kind=ErrorKind.NO_FIELDS_TO_UPDATE, message=NO_FIELDS_TO_UPDATE
            )
        assignments = [f"{column} = :{column}" for column in changes]
        assignments.append(f"updatedAt = {TIMESTAMP_NOW}")
        try:
            if patch.email is not None and self._email_taken(
                patch.email, exclude_id=user_id
            ):
                return _duplicate_email()
            result = self.database.execute(
                f"UPDATE users SET {', '.join(assignments)} WHERE id = :id",
                {**changes, "id": user_id},
            )
        except ConstraintViolation:
            return _duplicate_email()
        except StorageError as exc:
            return _storage_failure(exc)
        if result.rows_affected == 0:
            return Failure(kind=ErrorKind.NOT_FOUND, message=USER_NOT_FOUND)
        return self.get_user_by_id(user_id)

    def delete_user(self, user_id: int) -> Ok[bool] | Failure:
        """Delete a user; the value tells whether a row was removed."""
        try:
            result = self.database.execute(
                "DELETE FROM users WHERE id = :id", {"id": user_id}
            )
        except StorageError as exc:
            return _storage_failure(exc)
        return Ok(result.rows_affected > 0)

    def email_exists(
        self, email: str, exclude_id: int | None = None
    ) -> Ok[bool] | Failure:
        """Check whether another user already owns the email."""
        try:
            return Ok(self._email_taken(email, exclude_id))
        except StorageError as exc:
            return _storage_failure(exc)

    def _email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        statement = "SELECT id FROM users WHERE email = :email"
        params: dict[str, object] = {"email": email}
        if exclude_id is not None:
            statement += " AND id != :exclude_id"
            params["exclude_id"] = exclude_id
        return self.database.query_one(statement, params) is not None


def _row_to_user(row: Mapping[str, object]) -> UserRecord:
    return UserRecord(
        id=int(row["id"]),
        name=str(row["name"]),
        email=str(row["email"]),
        age=int(row["age"]),
        created_at=datetime.fromisoformat(str(row["createdAt"])),
        updated_at=datetime.fromisoformat(str(row["updatedAt"])),
    )


def _contains_pattern(text: str) -> str:
    escaped = (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


def _duplicate_email() -> Failure:
    return Failure(kind=ErrorKind.DUPLICATE_EMAIL, message=EMAIL_ALREADY_EXISTS)


def _storage_failure(exc: StorageError) -> Failure:
    return Failure(kind=ErrorKind.STORAGE_FAILURE, message=STORAGE_FAILURE, cause=exc)
