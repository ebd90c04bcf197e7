"""
Middleware components for the Inkpress API.

This module contains middleware for security headers, request logging
and CORS handling, plus the lifespan handler that opens and closes the
database engine.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from logging import basicConfig, getLogger
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from rich.logging import RichHandler
from rich.traceback import install
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from inkpress.configs import file_logger, settings
from inkpress.db import close_db, init_db
from inkpress.errors.database import DatabaseInitializationError
from inkpress.utils.helpers import host, route_label

REQUEST_ID_HEADER = "X-Request-ID"

# --- Logging Configuration ---
basicConfig(
    level=settings.LOG_LEVEL,
    format="%(message)s",
    datefmt="%X",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = file_logger(getLogger("rich"))

install()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Create missing tables on startup and dispose of the engine on shutdown."""
    logger.info(f"Starting {app.title}...")

    try:
        if settings.LOG_TO_FILE:
            logger.info(f"Logging to file enabled: {settings.LOG_FILE}")
        await init_db()
        logger.info("Services initialized successfully")
        logger.info("  - API Documentation: http://localhost:8000/docs")
        logger.info("  - Health Check: http://localhost:8000/health")
    except Exception as e:
        logger.exception("Failed to initialize services")
        raise DatabaseInitializationError from e

    yield

    logger.info(f"Shutting down {app.title}...")
    try:
        await close_db()
    except Exception:
        logger.exception("Error during service cleanup")


def configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware for the application."""
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    if frontend_url := settings.PRODUCTION_FRONTEND_URL:
        allowed_origins.append(frontend_url)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request with its route label, status and duration.

    Each request carries an ``X-Request-ID`` (the caller's, or a new one)
    that is echoed on the response and prefixed to both log lines.
    Requests slower than ``SLOW_REQUEST_SECONDS`` are logged as warnings.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        start_time = perf_counter()
        logger.info(f"[{request_id}] Request: {route_label(request)}, from ip: {host(request)}")

        response = await call_next(request)
        duration = perf_counter() - start_time
        response.headers[REQUEST_ID_HEADER] = request_id

        message = (
            f"[{request_id}] Response: {response.status_code} for "
            f"{request.method} {request.url.path} in {duration:.3f}s"
        )
        if duration > settings.SLOW_REQUEST_SECONDS:
            logger.warning(f"{message} (slow)")
        else:
            logger.info(message)

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Add security headers to all responses."""

        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response
