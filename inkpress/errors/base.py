from collections.abc import Awaitable, Callable
from logging import Logger
from typing import Any

from fastapi import Request
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from inkpress.utils.helpers import host


class BaseAppError(Exception):
    """
    Base exception class for application errors.

    ``detail`` and ``status_code`` map straight onto the HTTP response;
    any other instance attribute a subclass sets (``errors`` for example)
    is added to the response body next to ``detail``.
    """

    def __init__(
        self,
        detail: str = "Internal Server Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code

    def __str__(self) -> str:
        return self.detail

    def to_content(self) -> dict[str, Any]:
        """JSON body for this error."""
        extra = {k: v for k, v in vars(self).items() if k not in ("detail", "status_code")}
        return {"detail": self.detail, **extra}


def create_exception_handler(
    logger: Logger,
) -> Callable[[Request, Exception], Awaitable[ORJSONResponse]]:
    """
    Create a standardized exception handler for the application.

    Client errors (4xx) are logged as warnings, server errors with their
    traceback. Exceptions that are not `BaseAppError` never leak their
    message.

    Args:
        logger: Logger instance to use for logging exceptions.

    Returns:
        A callable exception handler.
    """

    async def handler(request: Request, exc: Exception) -> ORJSONResponse:
        error = exc if isinstance(exc, BaseAppError) else BaseAppError()

        message = f"{error.detail} for ip: {host(request)} for endpoint {request.url.path}"
        if error.status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(message, exc_info=exc)
        else:
            logger.warning(message)

        return ORJSONResponse(content=error.to_content(), status_code=error.status_code)

    return handler
