"""Health check response schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness: the process is up and serving requests."""

    status: HealthStatus
    version: str
    environment: str
    timestamp: datetime


class ComponentHealth(BaseModel):
    status: HealthStatus
    message: str | None = None
    latency_ms: float | None = Field(None, ge=0)


class HealthDetailResponse(HealthResponse):
    """Readiness: the database answers and the schema has been migrated."""

    database: ComponentHealth
    tables: ComponentHealth
