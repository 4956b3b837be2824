"""Health check endpoints."""

from pathlib import Path

from fastapi import APIRouter
from pydantic import BaseModel

from seo_engine.config import settings
from seo_engine.core.database import check_db_connection
from seo_engine.core.redis import check_redis_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response with dependency status."""

    status: str
    checks: dict[str, bool]


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Returns OK if the service is running. Use for load balancer health checks.",
)
async def health() -> HealthResponse:
    """Basic health check - always returns OK if service is running."""
    return HealthResponse(
        status="ok",
        version=settings.app_version,
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description=(
        "Checks the database and the artifact storage directory. Redis is "
        "reported but optional: caches and locks fall back to in-process."
    ),
)
async def readiness() -> ReadinessResponse:
    """Readiness probe - checks all dependencies."""
    db_ok = await check_db_connection()
    redis_ok = await check_redis_connection()
    storage_ok = Path(settings.storage_root).is_dir()

    status_str = "ok" if db_ok and storage_ok else "degraded"

    return ReadinessResponse(
        status=status_str,
        checks={
            "database": db_ok,
            "redis": redis_ok,
            "storage": storage_ok,
        },
    )
