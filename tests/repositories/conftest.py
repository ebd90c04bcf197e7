# tests/repositories/conftest.py
"""Fixtures and factories for repository tests."""

from collections.abc import Awaitable, Callable
from typing import Any

from pytest import fixture
from sqlalchemy.ext.asyncio import AsyncSession

from inkpress.models import CategoryDB
from inkpress.repositories import CategoryRepository, PostRepository
from inkpress.schemas import CategoryCreate, PostCreate, PostResponse

type MakePost = Callable[..., Awaitable[PostResponse]]
type MakeCategory = Callable[..., Awaitable[CategoryDB]]


@fixture
def posts(session: AsyncSession) -> PostRepository:
    return PostRepository(session)


@fixture
def categories(session: AsyncSession) -> CategoryRepository:
    return CategoryRepository(session)


@fixture
def make_post(posts: PostRepository) -> MakePost:
    """Create a post with sensible defaults; later calls are newer."""

    async def _make(title: str, **overrides: Any) -> PostResponse:  # noqa: ANN401
        data: dict[str, Any] = {"title": title, "content": f"Body of {title}"}
        data.update(overrides)
        return await posts.create(PostCreate.model_validate(data))

    return _make


@fixture
def make_category(categories: CategoryRepository) -> MakeCategory:
    async def _make(name: str, description: str | None = None) -> CategoryDB:
        return await categories.create(CategoryCreate(name=name, description=description))

    return _make
