"""Pydantic models for symptoms logged against a period."""

from __future__ import annotations

import datetime
import uuid

from pydantic import Field

from cyclecast.forecast.types import SymptomType
from cyclecast.models.base import CycleCastBase


class SymptomCreate(CycleCastBase):
    date: datetime.date
    symptom_type: SymptomType
    severity: int = Field(ge=1, le=5)
    notes: str | None = None


class SymptomRead(SymptomCreate):
    id: uuid.UUID
    period_id: uuid.UUID


class SymptomPatternRead(CycleCastBase):
    symptom_type: SymptomType
    frequency: int = Field(ge=0, description="Percent of logged periods")
    avg_severity: float
    occurrences: int


class SymptomPatternsRead(CycleCastBase):
    patterns: list[SymptomPatternRead]
    total_periods: int
