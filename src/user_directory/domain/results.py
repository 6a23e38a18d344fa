"""Result values and error kinds shared across layers."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Kinds of failure a layer can report."""

    VALIDATION = "validation"
    DUPLICATE_EMAIL = "duplicate_email"
    NOT_FOUND = "not_found"
    NO_FIELDS_TO_UPDATE = "no_fields_to_update"
    MALFORMED_IDENTIFIER = "malformed_identifier"
    STORAGE_FAILURE = "storage_failure"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T


@dataclass(frozen=True)
class Failure:
    """Failed outcome tagged with its kind.

    ``errors`` holds itemized validation messages. ``cause`` keeps the
    underlying exception for server-side logging and is never sent to clients.
    """

    kind: ErrorKind
    message: str
    errors: tuple[str, ...] = ()
    cause: BaseException | None = None


class StorageError(Exception):
    """Raised by the storage accessor when a statement fails."""


class ConstraintViolation(StorageError):
    """Raised when a statement violates a table constraint."""
