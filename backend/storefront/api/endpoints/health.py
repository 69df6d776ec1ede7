"""
Health check endpoints for the Storefront API.

Liveness, readiness (database and cache store) and Prometheus metrics.
"""

import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ...constants import APP_NAME, APP_VERSION, get_current_timestamp
from ...core.database import DatabaseManager
from ...domain.cache.repository_interfaces import TaggedCacheStore
from ..dependencies import get_cache, get_database

# Track process start time for uptime calculation
PROCESS_START_TIME = time.time()

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(request: Request) -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns a simple health status for load balancers and monitoring systems.
    """
    return {
        "status": "healthy",
        "timestamp": get_current_timestamp().isoformat(),
        "service": APP_NAME,
        "version": APP_VERSION,
        "environment": request.app.state.settings.ENVIRONMENT,
        "uptime_seconds": round(time.time() - PROCESS_START_TIME, 3),
    }


@router.get("/ready")
async def readiness_check(
    database: DatabaseManager = Depends(get_database),
    cache: TaggedCacheStore = Depends(get_cache),
):
    """
    Readiness check endpoint.

    The database is required; an unhealthy cache store only degrades the
    service, since every read falls back to the database.
    """
    checks = {
        "database": await database.health_check(),
        "cache": await cache.health_check(),
    }

    ready = checks["database"].get("status") == "healthy"
    if checks["cache"].get("status") != "healthy":
        logger.warning(f"Cache store unhealthy: {checks['cache']}")

    body = {
        "status": "ready" if ready else "not_ready",
        "timestamp": get_current_timestamp().isoformat(),
        "checks": checks,
    }
    return JSONResponse(status_code=200 if ready else 503, content=body)


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus exposition of the cache counters."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
