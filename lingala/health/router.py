"""Health check endpoints."""

from fastapi import APIRouter, Request

from lingala.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness check - the process is up."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness check - reports whether the datastore is wired in."""
    settings = get_settings()
    database = getattr(request.app.state, "cassandra_session", None) is not None
    return {
        "status": "ready" if database else "degraded",
        "environment": settings.environment,
        "database": database,
    }


@router.get("")
async def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
