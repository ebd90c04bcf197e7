"""Validation errors and their uniform ``{"detail", "errors"}`` response body."""

from collections.abc import Iterable, Mapping
from logging import getLogger
from typing import Any, cast

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_422_UNPROCESSABLE_CONTENT

from inkpress.configs import file_logger
from inkpress.errors.base import BaseAppError, create_exception_handler
from inkpress.utils.helpers import host

logger = file_logger(getLogger(__name__))

# Request locations FastAPI puts first in ``loc``
_SOURCES = frozenset({"body", "query", "path", "header", "cookie"})


class ValidationError(BaseAppError):
    """Input rejected before it reaches the store."""

    def __init__(
        self,
        detail: str = "Validation Error",
        errors: list[dict] | None = None,
    ) -> None:
        super().__init__(detail=detail, status_code=HTTP_422_UNPROCESSABLE_CONTENT)
        self.errors = errors or []


def format_errors(errors: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """
    Flatten pydantic error dicts into ``field``/``message``/``type`` entries.

    Used for both request validation and listing parameter validation,
    so clients see one error shape.

    Args:
        errors: Items of ``ValidationError.errors()``.

    Returns:
        list[dict[str, Any]]: One entry per error, ``input`` and
        ``context`` included when pydantic reports them.
    """
    formatted: list[dict[str, Any]] = []
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in _SOURCES:
            loc = loc[1:]
        entry: dict[str, Any] = {
            "field": ".".join(str(part) for part in loc),
            "message": error.get("msg", "Invalid value"),
            "type": error.get("type", "validation_error"),
        }
        if "input" in error:
            entry["input"] = error["input"]
        if ctx := error.get("ctx"):
            entry["context"] = {
                key: str(value) if isinstance(value, Exception) else value
                for key, value in ctx.items()
            }
        formatted.append(entry)
    return formatted


app_validation_exception_handler = create_exception_handler(logger)


async def validation_exception_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Handle FastAPI request validation errors with the uniform error body.

    Args:
        request: The incoming request.
        exc: The RequestValidationError exception.

    Returns:
        ORJSONResponse with formatted validation errors.
    """
    errors = format_errors(cast(RequestValidationError, exc).errors())

    logger.warning(
        f"Validation error for ip: {host(request)} at endpoint {request.url.path}: {errors}",
    )

    return ORJSONResponse(
        status_code=HTTP_422_UNPROCESSABLE_CONTENT,
        content={"detail": "Validation failed", "errors": errors},
    )
