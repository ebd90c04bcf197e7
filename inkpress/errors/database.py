from logging import getLogger
from typing import Self

from sqlalchemy.exc import IntegrityError
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from inkpress.configs import file_logger
from inkpress.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))

# Unique columns and the message shown when a write collides on them
_UNIQUE_COLUMNS = {
    "slug": "Slug is already taken",
    "name": "Category name already exists",
}


class DatabaseError(BaseAppError):
    """Base exception for database errors."""

    def __init__(
        self,
        detail: str = "Database Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail, status_code)


class DatabaseConnectionError(DatabaseError):
    """The store could not be reached or rejected the write for a non-integrity reason."""

    def __init__(self, detail: str = "Failed to connect to the database") -> None:
        super().__init__(detail)


class DatabaseInitializationError(DatabaseError):
    """Tables could not be created on startup."""

    def __init__(self, detail: str = "Failed to initialize database") -> None:
        super().__init__(detail)


class DuplicateEntryError(DatabaseError):
    """A unique slug or category name is already taken."""

    def __init__(self, detail: str = "A record with this value already exists") -> None:
        super().__init__(detail, HTTP_409_CONFLICT)


class RecordNotFoundError(DatabaseError):
    """A post or category lookup matched no row."""

    def __init__(self, detail: str = "Record not found") -> None:
        super().__init__(detail, HTTP_404_NOT_FOUND)

    @classmethod
    def for_id(cls, label: str, record_id: int) -> Self:
        return cls(f"{label} with ID {record_id} not found")

    @classmethod
    def for_field(cls, label: str, field_name: str, value: object) -> Self:
        return cls(f"{label} with {field_name} '{value}' not found")


def translate_integrity_error(exc: IntegrityError) -> DatabaseError:
    """
    Map a driver integrity error to the application error it stands for.

    Unique violations on ``slug`` or ``name`` become a 409 with a readable
    message; anything else (foreign keys, NOT NULL) stays a 500.

    Args:
        exc: The error raised by flush or commit.

    Returns:
        DatabaseError: The error to raise in its place.
    """
    message = str(exc.orig) if exc.orig else str(exc)
    lowered = message.lower()
    if "unique" not in lowered and "duplicate" not in lowered:
        return DatabaseError(detail=f"Database integrity error: {message}")

    for column, detail in _UNIQUE_COLUMNS.items():
        if column in lowered:
            return DuplicateEntryError(detail)
    return DuplicateEntryError()


database_exception_handler = create_exception_handler(logger)
