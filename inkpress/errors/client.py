"""Errors raised by the HTTP client when the API answers with an error status."""

from starlette.status import HTTP_404_NOT_FOUND, HTTP_422_UNPROCESSABLE_CONTENT

from inkpress.errors.base import BaseAppError


class ApiError(BaseAppError):
    """Non-2xx answer from the blog API."""

    def __init__(self, status_code: int, detail: str = "API request failed") -> None:
        super().__init__(detail=detail, status_code=status_code)


class NotFoundError(ApiError):
    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(HTTP_404_NOT_FOUND, detail)


class ApiValidationError(ApiError):
    """The API rejected the input (422)."""

    def __init__(self, detail: str = "Validation failed", errors: list[dict] | None = None) -> None:
        super().__init__(HTTP_422_UNPROCESSABLE_CONTENT, detail)
        self.errors = errors or []
