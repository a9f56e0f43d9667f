"""Health check endpoints."""

from fastapi import APIRouter, Response, status

from learnpath.config import get_settings
from learnpath.core.database import AsyncCassandraConnection
from learnpath.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness check - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(response: Response) -> dict[str, str | bool]:
    """Readiness check - Cassandra is required, Redis only backs preferences."""
    settings = get_settings()
    cassandra_ok = AsyncCassandraConnection.is_connected()

    if not cassandra_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "ready" if cassandra_ok else "not_ready",
        "environment": settings.environment,
        "cassandra": cassandra_ok,
        "redis": get_redis() is not None,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
