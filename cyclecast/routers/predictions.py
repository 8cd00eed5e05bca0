"""Forecast endpoints: cached next-cycle prediction and multi-cycle calendar."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from cyclecast.dependencies import CurrentUser, ForecastServiceDep
from cyclecast.models.predictions import CalendarRead, PredictionResponse

router = APIRouter(prefix="/predictions", tags=["predictions"])


@router.get("/next-period", response_model=PredictionResponse)
async def next_period(user: CurrentUser, forecasts: ForecastServiceDep) -> Any:
    payload, cached = await forecasts.next_cycle(user.user_id)
    return {"data": payload, "cached": cached}


@router.get("/calendar", response_model=CalendarRead)
async def calendar(
    user: CurrentUser,
    forecasts: ForecastServiceDep,
    cycles: int = Query(default=3, description="Cycles to project, clamped to 1–6"),
) -> Any:
    return await forecasts.calendar(user.user_id, cycles)
