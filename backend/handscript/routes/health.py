"""
Handscript Backend: Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the media store and reports its status with service uptime.
Who:   Called by container health checks, load balancers, and monitoring.

Status levels:
    - healthy:   Media store reachable (HTTP 200)
    - degraded:  Media store unreachable or unconfigured (HTTP 200, flag for monitoring)

The service itself has no other dependency; rendering is local.
"""

import logging
import time

from fastapi import APIRouter

from handscript import __version__
from handscript.schemas.image import HealthResponse
from handscript.services.media_store import media_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Returns the health status of the backend service and the media store.",
)
async def health_check() -> HealthResponse:
    """
    Check the health of the service and the media store.

    The media store check is Cloudinary's Admin API ping, which does not
    touch any stored resource.
    """
    overall = "healthy"

    if not media_store.configured:
        store_status = "unconfigured"
        overall = "degraded"
    elif await media_store.ping():
        store_status = "available"
    else:
        store_status = "unavailable"
        overall = "degraded"
        logger.warning("Health check: media store unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        media_store=store_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
