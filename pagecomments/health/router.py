"""Health check endpoints."""

from fastapi import APIRouter, Request

from pagecomments.config import Settings, get_settings
from pagecomments.core.redis import redis_is_healthy


router = APIRouter(prefix="/health", tags=["health"])


def _settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - Redis must answer for comments to work."""
    settings = _settings(request)
    redis_ok = await redis_is_healthy(getattr(request.app.state, "redis", None))
    return {
        "status": "ready" if redis_ok else "degraded",
        "redis": redis_ok,
        "akismet_configured": settings.akismet_configured,
        "environment": settings.environment,
    }


@router.get("")
async def health(request: Request) -> dict[str, str]:
    """General health check endpoint."""
    settings = _settings(request)
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
