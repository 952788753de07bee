"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter

from payguard import __version__

router = APIRouter(tags=["health"])


@router.get("/health", summary="Basic health check")
async def health_check() -> dict:
    """Liveness check. Returns 200 whenever the application is running."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }
