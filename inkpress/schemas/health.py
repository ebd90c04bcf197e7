from typing import Literal

from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    """Health check payload."""

    version: str
    status: Literal["ok", "degraded"]
    timestamp: str
    database: Literal["connected", "unavailable"]
