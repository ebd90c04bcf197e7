from datetime import UTC, datetime

from fastapi import Request
from starlette.routing import Match


def host(request: Request) -> str:
    """Return the host IP address."""
    return request.client.host if request.client else "unknown"


def utc_now() -> datetime:
    """Return the current UTC time at full precision."""
    return datetime.now(tz=UTC)


def route_label(request: Request) -> str:
    """
    Human readable name of the route a request will hit.

    The OpenAPI ``summary`` of the matching route when it has one, else the
    route name, else ``METHOD path`` for requests no route matches.
    """
    for route in request.app.router.routes:
        if route.matches(request.scope)[0] is Match.FULL:
            label = getattr(route, "summary", None) or getattr(route, "name", None)
            if label:
                return label
            break
    return f"{request.method} {request.url.path}"
