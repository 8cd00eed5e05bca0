"""Pydantic models for logged periods."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import Field, model_validator

from cyclecast.forecast.types import FlowIntensity
from cyclecast.models.base import CycleCastBase


class PeriodBase(CycleCastBase):
    start_date: date
    end_date: date | None = None
    flow_intensity: FlowIntensity | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "PeriodBase":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PeriodCreate(PeriodBase):
    pass


class PeriodUpdate(CycleCastBase):
    start_date: date | None = None
    end_date: date | None = None
    flow_intensity: FlowIntensity | None = None
    notes: str | None = None


class PeriodRead(PeriodBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime | None = None


class PeriodPage(CycleCastBase):
    items: list[PeriodRead]
    total: int
    offset: int
    limit: int = Field(ge=1)
