# inkpress/clients/blog_client.py

from logging import getLogger
from types import TracebackType
from typing import Any, Self

import orjson
from httpx import AsyncClient, Response, Timeout
from starlette.status import HTTP_404_NOT_FOUND, HTTP_422_UNPROCESSABLE_CONTENT

from inkpress.configs import file_logger, settings
from inkpress.decorators import with_retry
from inkpress.errors.client import ApiError, ApiValidationError, NotFoundError
from inkpress.schemas import (
    CategoryResponse,
    PostCounts,
    PostCreate,
    PostDetailResponse,
    PostListParams,
    PostPage,
    PostResponse,
    PostUpdate,
    RecentParams,
    RecentPost,
)

logger = file_logger(getLogger(__name__))

DEFAULT_TIMEOUT = Timeout(10.0, connect=5.0)


def _raise_for_status(response: Response) -> None:
    """Translate an error status into the matching `ApiError`."""
    if not response.is_error:
        return

    body: Any = None
    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    detail = str(detail) if detail is not None else response.reason_phrase

    logger.warning(
        f"{response.request.method} {response.request.url.path} failed: "
        f"{response.status_code} {detail}",
    )
    if response.status_code == HTTP_404_NOT_FOUND:
        raise NotFoundError(detail)
    if response.status_code == HTTP_422_UNPROCESSABLE_CONTENT:
        errors = body.get("errors") if isinstance(body, dict) else None
        raise ApiValidationError(detail, errors=errors)
    raise ApiError(response.status_code, detail)


class BlogClient:
    """
    Async client for the Inkpress HTTP API.

    Queries are retried on transport failures; mutations are sent once,
    since a retried create or toggle is not idempotent.

    Attributes:
        http: The underlying httpx AsyncClient.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http: AsyncClient | None = None,
    ) -> None:
        self._owns_http = http is None
        self.http = http or AsyncClient(base_url=base_url, timeout=DEFAULT_TIMEOUT)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self.http.aclose()

    @with_retry(max_attempts=settings.QUERY_MAX_RETRIES, base_delay=settings.QUERY_RETRY_DELAY)
    async def _query(self, path: str, params: dict[str, Any] | None = None) -> Any:  # noqa: ANN401
        response = await self.http.get(path, params=params)
        _raise_for_status(response)
        return orjson.loads(response.content)

    async def _mutate(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> Any:  # noqa: ANN401
        content = orjson.dumps(payload) if payload is not None else None
        headers = {"Content-Type": "application/json"} if content is not None else None
        response = await self.http.request(method, path, content=content, headers=headers)
        _raise_for_status(response)
        return orjson.loads(response.content)

    # Queries

    async def list_posts(self, params: PostListParams) -> PostPage:
        return PostPage.model_validate(await self._query("/posts", params.to_query()))

    async def get_recent(self, params: RecentParams | None = None) -> list[RecentPost]:
        params = params or RecentParams()
        query = {"limit": params.limit, "published": str(params.published).lower()}
        data = await self._query("/posts/recent", query)
        return [RecentPost.model_validate(item) for item in data]

    async def get_counts(self) -> PostCounts:
        return PostCounts.model_validate(await self._query("/posts/counts"))

    async def get_post(self, post_id: int) -> PostDetailResponse:
        return PostDetailResponse.model_validate(await self._query(f"/posts/by-id/{post_id}"))

    async def get_post_by_slug(self, slug: str) -> PostResponse:
        return PostResponse.model_validate(await self._query(f"/posts/by-slug/{slug}"))

    async def list_categories(self) -> list[CategoryResponse]:
        data = await self._query("/categories")
        return [CategoryResponse.model_validate(item) for item in data]

    # Mutations

    async def create_post(self, post: PostCreate) -> PostResponse:
        payload = post.model_dump(mode="json", by_alias=True, exclude_none=True)
        return PostResponse.model_validate(await self._mutate("POST", "/posts", payload))

    async def update_post(self, post_id: int, changes: PostUpdate) -> PostResponse:
        """Send only the fields that were explicitly set on ``changes``."""
        payload = changes.model_dump(mode="json", by_alias=True, exclude_unset=True)
        data = await self._mutate("PATCH", f"/posts/{post_id}", payload)
        return PostResponse.model_validate(data)

    async def delete_post(self, post_id: int) -> None:
        await self._mutate("DELETE", f"/posts/{post_id}")

    async def toggle_published(self, post_id: int) -> PostResponse:
        data = await self._mutate("POST", f"/posts/{post_id}/toggle-published")
        return PostResponse.model_validate(data)
