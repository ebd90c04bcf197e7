"""FastAPI dependency providers."""

from typing import Annotated

from fastapi import Depends, Query
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from inkpress.configs import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RECENT_LIMIT,
    MAX_PAGE_SIZE,
    MAX_RECENT_LIMIT,
)
from inkpress.db import get_session
from inkpress.errors.validation import ValidationError, format_errors
from inkpress.repositories import CategoryRepository, PostRepository
from inkpress.schemas import PostListParams, RecentParams

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_post_repository(session: SessionDep) -> PostRepository:
    """Resolve a `PostRepository` bound to the request session."""
    return PostRepository(session)


def get_category_repository(session: SessionDep) -> CategoryRepository:
    """Resolve a `CategoryRepository` bound to the request session."""
    return CategoryRepository(session)


PostRepoDep = Annotated[PostRepository, Depends(get_post_repository)]
CategoryRepoDep = Annotated[CategoryRepository, Depends(get_category_repository)]


def get_post_list_params(
    published: Annotated[bool | None, Query(description="Filter on publish state")] = None,
    search: Annotated[
        str | None,
        Query(description="Case-insensitive match on title or author"),
    ] = None,
    category_ids: Annotated[
        list[int] | None,
        Query(alias="categoryIds", description="Posts in ANY of these categories"),
    ] = None,
    category_id: Annotated[
        int | None,
        Query(alias="categoryId", description="Single category (legacy)"),
    ] = None,
    page: Annotated[int, Query(ge=1, description="1-indexed page number")] = DEFAULT_PAGE,
    limit: Annotated[
        int,
        Query(ge=1, le=MAX_PAGE_SIZE, description="Page size"),
    ] = DEFAULT_PAGE_SIZE,
) -> PostListParams:
    """
    Dependency to construct `PostListParams` from query parameters.

    Out-of-range ``page``/``limit`` are rejected by FastAPI with a 422
    before this runs.

    Raises:
        ValidationError: If the parameters fail model validation
    """
    try:
        return PostListParams.model_validate(
            {
                "published": published,
                "search": search,
                "categoryIds": category_ids or [],
                "categoryId": category_id,
                "page": page,
                "limit": limit,
            },
        )
    except PydanticValidationError as e:
        errors = format_errors(e.errors(include_url=False))
        raise ValidationError("Invalid listing parameters", errors=errors) from e


def get_recent_params(
    limit: Annotated[
        int,
        Query(ge=1, le=MAX_RECENT_LIMIT, description="Number of posts"),
    ] = DEFAULT_RECENT_LIMIT,
    published: Annotated[bool, Query(description="Only published posts")] = True,
) -> RecentParams:
    """Dependency to construct `RecentParams` from query parameters."""
    return RecentParams(limit=limit, published=published)


PostListParamsDep = Annotated[PostListParams, Depends(get_post_list_params)]
RecentParamsDep = Annotated[RecentParams, Depends(get_recent_params)]
