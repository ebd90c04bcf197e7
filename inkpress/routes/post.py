"""
Post Routes.

Provides the paginated, filterable post listing plus CRUD and the atomic
publish toggle.

Summary
-------
Endpoints include:
  - List posts (filters: published, search, categories; paginated)
  - Recent posts
  - Post counts
  - Get post by id / by slug
  - Create, update, delete post
  - Toggle published state

Errors raised by the repository (`RecordNotFoundError`, `DuplicateEntryError`,
`ValidationError`) propagate to the application's exception handlers.
"""

from logging import getLogger
from typing import Annotated

from fastapi import APIRouter, Body, Path
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_201_CREATED

from inkpress.configs import file_logger
from inkpress.dependencies import PostListParamsDep, PostRepoDep, RecentParamsDep
from inkpress.schemas import (
    PostCounts,
    PostCreate,
    PostDetailResponse,
    PostPage,
    PostResponse,
    PostUpdate,
    RecentPost,
    SuccessResponse,
)

router = APIRouter(prefix="/posts", tags=["📝 Posts"])

logger = file_logger(getLogger(__name__))

PostId = Annotated[int, Path(ge=1, description="Post ID")]

_NOT_FOUND = {
    404: {
        "description": "Not found",
        "content": {"application/json": {"example": {"detail": "Post with ID 42 not found"}}},
    },
}


@router.get(
    "",
    response_class=ORJSONResponse,
    response_model=PostPage,
    summary="List posts",
    description=(
        "Paginated listing, newest first. Filters combine with AND; "
        "`categoryIds` matches posts in ANY of the given categories."
    ),
    responses={
        422: {
            "description": "Invalid page or limit",
            "content": {"application/json": {"example": {"detail": "Validation failed"}}},
        },
    },
    operation_id="posts_list",
)
async def list_posts(repo: PostRepoDep, params: PostListParamsDep) -> PostPage:
    """
    Get one page of posts with their categories.

    Parameters
    ----------
    repo : PostRepository
        Repository dependency.
    params : PostListParams
        Normalized filters and pagination.

    Returns
    -------
    PostPage
        Items for the requested page and the total number of matches.
    """
    return await repo.list_posts(params)


@router.get(
    "/recent",
    response_class=ORJSONResponse,
    response_model=list[RecentPost],
    summary="Recent posts",
    operation_id="posts_recent",
)
async def get_recent_posts(repo: PostRepoDep, params: RecentParamsDep) -> list[RecentPost]:
    """Lightweight projection of the most recent posts."""
    return await repo.get_recent(params)


@router.get(
    "/counts",
    response_class=ORJSONResponse,
    response_model=PostCounts,
    summary="Post counts",
    responses={
        200: {
            "content": {
                "application/json": {"example": {"total": 12, "published": 9, "draft": 3}},
            },
        },
    },
    operation_id="posts_counts",
)
async def get_post_counts(repo: PostRepoDep) -> PostCounts:
    return await repo.get_counts()


@router.get(
    "/by-id/{post_id}",
    response_class=ORJSONResponse,
    response_model=PostDetailResponse,
    summary="Get post by ID",
    responses=_NOT_FOUND,
    operation_id="posts_get_by_id",
)
async def get_post(post_id: PostId, repo: PostRepoDep) -> PostDetailResponse:
    """
    Get a post by ID, including a flattened `categoryIds` list for edit forms.

    Raises
    ------
    RecordNotFoundError
        If the post does not exist.
    """
    return await repo.get_detail(post_id)


@router.get(
    "/by-slug/{slug}",
    response_class=ORJSONResponse,
    response_model=PostResponse,
    summary="Get post by slug",
    responses=_NOT_FOUND,
    operation_id="posts_get_by_slug",
)
async def get_post_by_slug(slug: str, repo: PostRepoDep) -> PostResponse:
    """
    Get a post by its slug.

    Raises
    ------
    RecordNotFoundError
        If no post has this slug.
    """
    return await repo.get_by_slug(slug)


@router.post(
    "",
    response_class=ORJSONResponse,
    response_model=PostResponse,
    status_code=HTTP_201_CREATED,
    summary="Create a post",
    description="Create a post. The slug is derived from the title.",
    responses={
        409: {
            "description": "Slug conflict",
            "content": {
                "application/json": {"example": {"detail": "Slug is already taken"}},
            },
        },
        422: {
            "description": "Invalid payload",
            "content": {
                "application/json": {"example": {"detail": "Unknown category IDs: [99]"}},
            },
        },
    },
    operation_id="posts_create",
)
async def create_post(
    post: Annotated[
        PostCreate,
        Body(
            examples=[
                {
                    "title": "Getting Started with FastAPI",
                    "content": "# Getting Started\n\nFastAPI is a modern web framework.",
                    "author": "Jane Doe",
                    "published": False,
                    "categoryIds": [1],
                },
            ],
        ),
    ],
    repo: PostRepoDep,
) -> PostResponse:
    """
    Create a new post.

    Parameters
    ----------
    post : PostCreate
        Post input payload.
    repo : PostRepository
        Repository dependency.

    Returns
    -------
    PostResponse
        The stored post with its generated slug and categories.
    """
    return await repo.create(post)


@router.patch(
    "/{post_id}",
    response_class=ORJSONResponse,
    response_model=PostResponse,
    summary="Update a post",
    description=(
        "Partial update. A new title re-derives the slug; a present "
        "`categoryIds` (even empty) replaces every category link."
    ),
    responses=_NOT_FOUND,
    operation_id="posts_update",
)
async def update_post(post_id: PostId, post: PostUpdate, repo: PostRepoDep) -> PostResponse:
    return await repo.update(post_id, post)


@router.delete(
    "/{post_id}",
    response_class=ORJSONResponse,
    response_model=SuccessResponse,
    summary="Delete a post",
    responses=_NOT_FOUND,
    operation_id="posts_delete",
)
async def delete_post(post_id: PostId, repo: PostRepoDep) -> SuccessResponse:
    """Hard delete a post; its category links are removed with it."""
    await repo.delete(post_id)
    return SuccessResponse()


@router.post(
    "/{post_id}/toggle-published",
    response_class=ORJSONResponse,
    response_model=PostResponse,
    summary="Toggle published state",
    description="Flip `published` atomically in the database.",
    responses=_NOT_FOUND,
    operation_id="posts_toggle_published",
)
async def toggle_published(post_id: PostId, repo: PostRepoDep) -> PostResponse:
    post = await repo.toggle_published(post_id)
    logger.info(f"Post {post_id} is now {'published' if post.published else 'a draft'}")
    return post
