"""Health check endpoint; public, no auth required."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from cyclecast.dependencies import AppSettings, get_prediction_cache
from cyclecast.services.cache import cache_status
from cyclecast.services.db import get_pool

router = APIRouter(tags=["system"])
logger = logging.getLogger("cyclecast.health")


@router.get("/health")
async def health_check(request: Request, settings: AppSettings) -> JSONResponse:
    """Liveness check with database and cache connectivity checks.

    Returns 503 when the database is unreachable.  An unreachable cache only
    degrades the status, since forecasts are still served without it.
    """
    db_ok = False
    try:
        pool = get_pool()
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        db_ok = True
    except Exception as exc:
        logger.warning("Health check DB query failed: %s", exc)

    cache = await cache_status(get_prediction_cache(request))
    healthy = db_ok and cache != "unreachable"

    return JSONResponse(
        status_code=200 if db_ok else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "version": settings.app_version,
            "environment": settings.environment,
            "database": "connected" if db_ok else "unreachable",
            "cache": cache,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
