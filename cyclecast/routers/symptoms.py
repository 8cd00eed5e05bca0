"""Symptom endpoints not scoped to a single period: patterns and deletion."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, HTTPException

from cyclecast.dependencies import CurrentUser, SymptomStoreDep
from cyclecast.forecast.symptom_patterns import (
    summarize_symptom_patterns,
    symptom_patterns_payload,
)
from cyclecast.models.base import ErrorDetail
from cyclecast.models.symptoms import SymptomPatternsRead

router = APIRouter(
    prefix="/symptoms",
    tags=["symptoms"],
    responses={404: {"model": ErrorDetail}},
)


@router.get("/patterns", response_model=SymptomPatternsRead)
async def symptom_patterns(user: CurrentUser, symptoms: SymptomStoreDep) -> Any:
    """Per-type frequency, mean severity, and occurrences across all periods."""
    entries, total_periods = await symptoms.fetch_symptom_entries(user.user_id)
    patterns = summarize_symptom_patterns(entries, total_periods)
    return symptom_patterns_payload(patterns, total_periods)


@router.delete("/{symptom_id}", status_code=204)
async def delete_symptom(
    symptom_id: uuid.UUID, user: CurrentUser, symptoms: SymptomStoreDep
) -> None:
    if not await symptoms.delete_symptom(user.user_id, symptom_id):
        raise HTTPException(status_code=404, detail="Symptom not found")
