"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from cyclecast.config import Settings, get_settings
from cyclecast.forecast.cache import NullCachePort, PredictionCache
from cyclecast.services.forecasting import ForecastService
from cyclecast.services.history import PostgresHistoryStore, PostgresSymptomStore


@dataclass(frozen=True)
class AuthContext:
    """Authenticated user context extracted from the bearer JWT."""

    user_id: uuid.UUID
    email: str | None = None


async def get_current_user(request: Request) -> AuthContext:
    """Extract the authenticated user from the request state.

    The auth middleware sets ``request.state.auth`` before routes run.
    """
    auth: AuthContext | None = getattr(request.state, "auth", None)
    if auth is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return auth


def get_history_store() -> PostgresHistoryStore:
    return PostgresHistoryStore()


def get_symptom_store() -> PostgresSymptomStore:
    return PostgresSymptomStore()


def get_prediction_cache(request: Request) -> PredictionCache:
    """The cache built at startup, or an always-miss cache before startup."""
    cache: PredictionCache | None = getattr(request.app.state, "prediction_cache", None)
    return cache or PredictionCache(NullCachePort())


def get_forecast_service(
    store: Annotated[PostgresHistoryStore, Depends(get_history_store)],
    cache: Annotated[PredictionCache, Depends(get_prediction_cache)],
) -> ForecastService:
    return ForecastService(store, cache)


# Annotated shortcuts for route signatures
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
AppSettings = Annotated[Settings, Depends(get_settings)]
HistoryStoreDep = Annotated[PostgresHistoryStore, Depends(get_history_store)]
SymptomStoreDep = Annotated[PostgresSymptomStore, Depends(get_symptom_store)]
ForecastServiceDep = Annotated[ForecastService, Depends(get_forecast_service)]
