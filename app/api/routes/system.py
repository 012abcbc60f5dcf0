"""
System routes: /health
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from app.api.models.common import HealthResponse

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness check; does not require authentication."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
