"""CycleCast API: FastAPI application entry point.

Run locally:
    uvicorn cyclecast.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cyclecast.config import get_settings
from cyclecast.forecast.config_loader import get_forecast_config
from cyclecast.forecast.errors import HistoryUnavailableError
from cyclecast.middleware.auth import JWTAuthMiddleware
from cyclecast.middleware.rate_limit import RateLimitMiddleware
from cyclecast.routers import health, periods, predictions, symptoms
from cyclecast.services.cache import build_prediction_cache, close_prediction_cache
from cyclecast.services.db import close_pool, init_pool

# ---------- Logging ----------

logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("cyclecast")


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logger.info(
        "Starting CycleCast API v%s [%s]",
        settings.app_version,
        settings.environment,
    )
    get_forecast_config()
    await init_pool(settings)
    app.state.prediction_cache = build_prediction_cache(settings)
    yield
    await close_prediction_cache(app.state.prediction_cache)
    await close_pool()
    logger.info("CycleCast API shut down")


# ---------- Error handlers ----------

async def history_unavailable_handler(
    request: Request, exc: HistoryUnavailableError
) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Period history is temporarily unavailable"},
    )


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="CycleCast API",
        description="Menstrual cycle forecasting with cached, freshness-safe predictions.",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_exception_handler(HistoryUnavailableError, history_unavailable_handler)

    # ---------- Middleware (the last one added runs first) ----------

    # Rate limiting
    app.add_middleware(RateLimitMiddleware, settings=settings)

    # Bearer JWT authentication
    app.add_middleware(JWTAuthMiddleware, settings=settings)

    # CORS is added last so it wraps everything and answers preflight
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "RateLimit-Limit",
            "RateLimit-Remaining",
            "RateLimit-Reset",
            "Retry-After",
        ],
    )

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(periods.router, prefix=v1_prefix)
    app.include_router(predictions.router, prefix=v1_prefix)
    app.include_router(symptoms.router, prefix=v1_prefix)

    return app


app = create_app()
