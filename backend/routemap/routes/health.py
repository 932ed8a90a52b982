"""
Route Map Backend: Health Check Route
======================================

What:  Liveness check for the hosting platform and uptime monitors.
How:   Answers without touching any upstream; a store outage should not
       take the instance out of rotation since /osm, /zip and /share still
       work without it.
"""

import time

from fastapi import APIRouter

from routemap import __version__
from routemap.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(ok=True, version=__version__, time=int(time.time() * 1000))
