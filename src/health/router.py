"""Health check endpoints."""

from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse

from src.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> ORJSONResponse:
    """Readiness probe - ready once the database session is up.

    Links cannot be issued or checked without Cassandra, so the probe
    answers 503 until the session exists.
    """
    settings = get_settings()
    database = getattr(request.app.state, "cassandra_session", None) is not None
    email = getattr(request.app.state, "email_service", None) is not None

    return ORJSONResponse(
        status_code=status.HTTP_200_OK
        if database
        else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if database else "not_ready",
            "environment": settings.environment,
            "debug": settings.debug,
            "database": database,
            "email": email,
        },
    )


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
