# inkpress/main.py

"""Inkpress Backend - multi-user blogging API with a paginated post query service."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from inkpress.configs import settings
from inkpress.db import engine
from inkpress.errors import (
    BaseAppError,
    DatabaseError,
    ValidationError,
    app_validation_exception_handler,
    database_exception_handler,
    validation_exception_handler,
)
from inkpress.errors.base import create_exception_handler
from inkpress.middleware import (
    LoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
    lifespan,
)
from inkpress.middleware.middleware import logger
from inkpress.routes import category_router, post_router
from inkpress.schemas import HealthCheckResponse
from inkpress.utils import utc_now

app = FastAPI(
    title=settings.APP_NAME,
    description="Inkpress Backend API",
    version="1.0.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    swagger_ui_parameters={
        "docExpansion": "none",
        "operationsSorter": "method",
    },
)

configure_cors(app)

app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

routes = [
    post_router,
    category_router,
]

_ = [app.include_router(router) for router in routes]

errors = [
    (DatabaseError, database_exception_handler),
    (ValidationError, app_validation_exception_handler),
    (BaseAppError, create_exception_handler(logger)),
    (RequestValidationError, validation_exception_handler),
]

_ = [app.add_exception_handler(exc_type, handler) for exc_type, handler in errors]


@app.get(
    "/health",
    tags=["🩺 Health"],
    summary="Health check endpoint",
    response_model=HealthCheckResponse,
    response_class=ORJSONResponse,
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "version": "1.0.0",
                        "status": "ok",
                        "timestamp": "2026-01-01T12:00:00+00:00",
                        "database": "connected",
                    },
                },
            },
        },
    },
    operation_id="health_check",
)
async def health_check() -> HealthCheckResponse:
    """
    Health check endpoint with a database round trip.

    Returns
    -------
    HealthCheckResponse
        ``status`` is ``degraded`` when the database does not answer.
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        database = "connected"
    except (SQLAlchemyError, OSError):
        logger.exception("Health check could not reach the database")
        database = "unavailable"

    return HealthCheckResponse(
        version=app.version,
        status="ok" if database == "connected" else "degraded",
        timestamp=utc_now().isoformat(timespec="seconds"),
        database=database,
    )


@app.get(
    "/",
    tags=["🏠 Root"],
    summary="Root access",
    response_model=dict[str, str],
    operation_id="root_access",
)
async def root() -> dict[str, str]:
    """Welcome message."""
    return {"message": f"Welcome to {settings.APP_NAME}"}


if __name__ == "__main__":
    from uvicorn import run

    run(
        "inkpress.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
        reload=True,
        loop="uvloop",
        http="httptools",
    )
