"""
Category Routes.

Category listing, lookups and CRUD. Deleting a category removes its
links to posts; the posts themselves are kept.
"""

from typing import Annotated

from fastapi import APIRouter, Path
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_201_CREATED

from inkpress.dependencies import CategoryRepoDep
from inkpress.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategorySummary,
    CategoryUpdate,
    SuccessResponse,
)

router = APIRouter(prefix="/categories", tags=["🏷️ Categories"])

CategoryId = Annotated[int, Path(ge=1, description="Category ID")]

_NOT_FOUND = {
    404: {
        "description": "Not found",
        "content": {
            "application/json": {"example": {"detail": "Category with ID 7 not found"}},
        },
    },
}


@router.get(
    "",
    response_class=ORJSONResponse,
    response_model=list[CategoryResponse],
    summary="List categories",
    operation_id="categories_list",
)
async def list_categories(repo: CategoryRepoDep) -> list[CategoryResponse]:
    """Every category, newest first."""
    return [CategoryResponse.model_validate(c) for c in await repo.list_all()]


@router.get(
    "/by-id/{category_id}",
    response_class=ORJSONResponse,
    response_model=CategoryResponse,
    summary="Get category by ID",
    responses=_NOT_FOUND,
    operation_id="categories_get_by_id",
)
async def get_category(category_id: CategoryId, repo: CategoryRepoDep) -> CategoryResponse:
    return CategoryResponse.model_validate(await repo.get_or_raise(category_id))


@router.get(
    "/by-slug/{slug}",
    response_class=ORJSONResponse,
    response_model=CategoryResponse,
    summary="Get category by slug",
    responses=_NOT_FOUND,
    operation_id="categories_get_by_slug",
)
async def get_category_by_slug(slug: str, repo: CategoryRepoDep) -> CategoryResponse:
    return CategoryResponse.model_validate(await repo.get_by_slug(slug))


@router.get(
    "/by-post/{post_id}",
    response_class=ORJSONResponse,
    response_model=list[CategorySummary],
    summary="Categories of a post",
    operation_id="categories_by_post",
)
async def get_categories_by_post(
    post_id: Annotated[int, Path(ge=1, description="Post ID")],
    repo: CategoryRepoDep,
) -> list[CategorySummary]:
    """Categories attached to a post; empty when the post has none or does not exist."""
    return [CategorySummary.model_validate(c) for c in await repo.get_by_post_id(post_id)]


@router.post(
    "",
    response_class=ORJSONResponse,
    response_model=CategoryResponse,
    status_code=HTTP_201_CREATED,
    summary="Create a category",
    responses={
        409: {
            "description": "Name already taken",
            "content": {
                "application/json": {"example": {"detail": "Category 'Python' already exists"}},
            },
        },
    },
    operation_id="categories_create",
)
async def create_category(category: CategoryCreate, repo: CategoryRepoDep) -> CategoryResponse:
    """
    Create a new category.

    Parameters
    ----------
    category : CategoryCreate
        Category input payload; the slug is derived from the name.
    repo : CategoryRepository
        Repository dependency.

    Returns
    -------
    CategoryResponse
        The stored category.
    """
    return CategoryResponse.model_validate(await repo.create(category))


@router.patch(
    "/{category_id}",
    response_class=ORJSONResponse,
    response_model=CategoryResponse,
    summary="Update a category",
    responses=_NOT_FOUND,
    operation_id="categories_update",
)
async def update_category(
    category_id: CategoryId,
    category: CategoryUpdate,
    repo: CategoryRepoDep,
) -> CategoryResponse:
    return CategoryResponse.model_validate(await repo.update(category_id, category))


@router.delete(
    "/{category_id}",
    response_class=ORJSONResponse,
    response_model=SuccessResponse,
    summary="Delete a category",
    responses=_NOT_FOUND,
    operation_id="categories_delete",
)
async def delete_category(category_id: CategoryId, repo: CategoryRepoDep) -> SuccessResponse:
    await repo.delete(category_id)
    return SuccessResponse()
