# tests/routes/test_app.py
"""Tests for the application-level endpoints and middleware."""

from httpx import AsyncClient
from pytest import mark
from starlette.status import HTTP_200_OK

from inkpress.configs import settings


class TestAppEndpoints:
    """Tests for application-level endpoints and middleware."""

    @mark.asyncio
    async def test_root(self, client: AsyncClient) -> None:
        """Test the root endpoint."""
        response = await client.get("/")

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"message": f"Welcome to {settings.APP_NAME}"}

    @mark.asyncio
    async def test_health_reports_database(self, client: AsyncClient) -> None:
        """Test the health endpoint reports the database state."""
        body = (await client.get("/health")).json()

        assert body["status"] == "ok"
        assert body["database"] == "connected"
        assert body["version"] == "1.0.0"

    @mark.asyncio
    async def test_security_headers(self, client: AsyncClient) -> None:
        """Test security headers are set."""
        response = await client.get("/")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    @mark.asyncio
    async def test_request_id_is_echoed(self, client: AsyncClient) -> None:
        """Test the request id is echoed or generated."""
        given = await client.get("/", headers={"X-Request-ID": "abc123"})
        generated = await client.get("/")

        assert given.headers["X-Request-ID"] == "abc123"
        assert len(generated.headers["X-Request-ID"]) == 32

    @mark.asyncio
    async def test_unknown_route(self, client: AsyncClient) -> None:
        """Test an unknown route returns 404."""
        response = await client.get("/nowhere")
        assert response.status_code == 404
