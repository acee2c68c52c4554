"""Health check endpoint."""

from datetime import UTC, datetime

from fastapi import APIRouter

from ...core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "filterMode": settings.FILTER_MODE,
        "timestamp": datetime.now(UTC).isoformat(),
    }
