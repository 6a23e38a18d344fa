"""Domain models for the user directory."""

from dataclasses import dataclass, field
from datetime import datetime
from math import ceil

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: int
    name: str
    email: str
    age: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserCreate:
    """Normalized fields for a new user."""

    name: str
    email: str
    age: int


@dataclass(frozen=True)
class UserPatch:
    """Normalized fields for a partial update; ``None`` means not provided."""

    name: str | None = None
    email: str | None = None
    age: int | None = None

    def changes(self) -> dict[str, object]:
        """Return only the fields that were provided."""
        return {
            key: value
            for key, value in (
                ("name", self.name),
                ("email", self.email),
                ("age", self.age),
            )
            if value is not None
        }

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass(frozen=True)
class UserFilters:
    """Filter and pagination options for listing users."""

    name: str | None = None
    email: str | None = None
    min_age: int | None = None
    max_age: int | None = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class UserPage:
    """One page of users plus the total matching the filters."""

    users: list[UserRecord] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit)
