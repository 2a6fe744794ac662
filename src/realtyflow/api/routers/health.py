"""Liveness and readiness probes. Neither needs a session token."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Response, status
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow import __version__
from realtyflow.api.dependencies import AppSettings, DbSession
from realtyflow.api.schemas.health import (
    ComponentHealth,
    HealthDetailResponse,
    HealthResponse,
    HealthStatus,
)
from realtyflow.core.logging import get_logger
from realtyflow.db.models.tenant import Tenant

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check(settings: AppSettings) -> HealthResponse:
    return HealthResponse(
        status=HealthStatus.HEALTHY,
        version=__version__,
        environment=settings.ENVIRONMENT,
        timestamp=datetime.now(UTC),
    )


@router.get(
    "/health/db",
    response_model=HealthDetailResponse,
    summary="Readiness probe",
    description=(
        "Checks the database connection and that the tenants table exists. "
        "Returns 503 when either check fails."
    ),
    responses={503: {"description": "Database unreachable or not migrated"}},
)
async def health_db(
    response: Response, db: DbSession, settings: AppSettings
) -> HealthDetailResponse:
    database = await _timed(db, text("SELECT 1"), "Database connection failed")
    if database.status == HealthStatus.HEALTHY:
        tables = await _timed(
            db, select(func.count()).select_from(Tenant), "Schema not migrated"
        )
    else:
        tables = ComponentHealth(status=HealthStatus.UNHEALTHY, message="Skipped")

    healthy = database.status == tables.status == HealthStatus.HEALTHY
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthDetailResponse(
        status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
        version=__version__,
        environment=settings.ENVIRONMENT,
        timestamp=datetime.now(UTC),
        database=database,
        tables=tables,
    )


async def _timed(db: AsyncSession, statement, failure: str) -> ComponentHealth:
    start = time.perf_counter()
    try:
        await db.execute(statement)
    except SQLAlchemyError as exc:
        logger.warning("health_check_failed", check=failure, error=str(exc)[:200])
        await db.rollback()
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=failure,
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )
