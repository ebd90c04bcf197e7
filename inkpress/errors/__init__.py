from inkpress.errors.base import BaseAppError, create_exception_handler
from inkpress.errors.client import ApiError, ApiValidationError, NotFoundError
from inkpress.errors.database import (
    DatabaseConnectionError,
    DatabaseError,
    DatabaseInitializationError,
    DuplicateEntryError,
    RecordNotFoundError,
    database_exception_handler,
    translate_integrity_error,
)
from inkpress.errors.validation import (
    ValidationError,
    app_validation_exception_handler,
    format_errors,
    validation_exception_handler,
)

__all__ = [
    "ApiError",
    "ApiValidationError",
    "BaseAppError",
    "DatabaseConnectionError",
    "DatabaseError",
    "DatabaseInitializationError",
    "DuplicateEntryError",
    "NotFoundError",
    "RecordNotFoundError",
    "ValidationError",
    "app_validation_exception_handler",
    "create_exception_handler",
    "database_exception_handler",
    "format_errors",
    "translate_integrity_error",
    "validation_exception_handler",
]
