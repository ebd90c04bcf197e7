# tests/routes/conftest.py
"""Pytest fixtures for route tests."""

from collections.abc import Awaitable, Callable
from typing import Any

from httpx import AsyncClient
from pytest import fixture
from starlette.status import HTTP_201_CREATED

type CreateVia = Callable[..., Awaitable[dict[str, Any]]]


@fixture
def create_post(client: AsyncClient) -> CreateVia:
    """POST a post through the API and return the response body."""

    async def _create(title: str, **fields: Any) -> dict[str, Any]:  # noqa: ANN401
        payload = {"title": title, "content": f"Body of {title}", **fields}
        response = await client.post("/posts", json=payload)
        assert response.status_code == HTTP_201_CREATED, response.text
        return response.json()

    return _create


@fixture
def create_category(client: AsyncClient) -> CreateVia:
    async def _create(name: str, **fields: Any) -> dict[str, Any]:  # noqa: ANN401
        response = await client.post("/categories", json={"name": name, **fields})
        assert response.status_code == HTTP_201_CREATED, response.text
        return response.json()

    return _create
