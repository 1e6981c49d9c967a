"""Health check endpoint. Public: not behind the auth middleware."""

from datetime import datetime, timezone

from fastapi import APIRouter

from journal.web.schemas import HealthResponse

router = APIRouter(tags=["health"])

VERSION = "0.1.0"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="ok",
        version=VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
