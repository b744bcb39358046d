"""Health check endpoints."""

from fastapi import APIRouter

from ..core.config import settings

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Return service health."""
    return {"status": "ok", "service": settings.APP_NAME}
