"""Pydantic response models for forecast endpoints.

Field names mirror the payload dicts produced by ``cyclecast.forecast.payload``.
"""

from __future__ import annotations

from datetime import date

from pydantic import Field

from cyclecast.forecast.types import FlowIntensity, Regularity
from cyclecast.models.base import CycleCastBase


class NextPeriodRead(CycleCastBase):
    predicted_start_date: date
    predicted_end_date: date
    confidence_score: float = Field(ge=0.0)
    predicted_flow_intensity: FlowIntensity | None = None


class FertileWindowRead(CycleCastBase):
    start_date: date
    end_date: date


class CycleStatsRead(CycleCastBase):
    avg_cycle_length: int
    avg_period_length: int
    cycle_regularity: Regularity
    standard_deviation: str  # two decimals, e.g. "1.23"
    cycles_tracked: int


class PredictionRead(CycleCastBase):
    next_period: NextPeriodRead
    fertile_window: FertileWindowRead
    cycle_stats: CycleStatsRead


class PredictionResponse(CycleCastBase):
    data: PredictionRead
    cached: bool


class CalendarCycleRead(CycleCastBase):
    cycle_number: int = Field(ge=1)
    next_period: NextPeriodRead
    fertile_window: FertileWindowRead


class CalendarRead(CycleCastBase):
    predictions: list[CalendarCycleRead]
    cycle_stats: CycleStatsRead
