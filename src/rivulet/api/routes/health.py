"""Health check route."""

from __future__ import annotations

from fastapi import APIRouter

from rivulet.api.dependencies import RivuletDep  # noqa: TCH001
from rivulet.core.schemas import HealthResponse

router = APIRouter(tags=["health"])

VERSION = "0.1.0"


@router.get("/api/v1/health", response_model=HealthResponse)
async def health_check(rivulet: RivuletDep) -> HealthResponse:
    """Liveness plus a snapshot of open streams. No auth required."""
    return HealthResponse(
        status="ok",
        channels=len(rivulet.publisher.channels()),
        subscribers=rivulet.publisher.subscriber_count(),
        version=VERSION,
    )
