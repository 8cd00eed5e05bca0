"""CRUD endpoints for logged periods.

Every period write drops the user's cached forecast before responding, so the
next prediction read recomputes from the updated history.  Symptoms do not
feed the forecast and leave the cache alone.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Response

from cyclecast.dependencies import (
    CurrentUser,
    ForecastServiceDep,
    HistoryStoreDep,
    SymptomStoreDep,
)
from cyclecast.models.base import ErrorDetail
from cyclecast.models.periods import PeriodCreate, PeriodPage, PeriodRead, PeriodUpdate
from cyclecast.models.symptoms import SymptomCreate, SymptomRead

router = APIRouter(
    prefix="/periods",
    tags=["periods"],
    responses={404: {"model": ErrorDetail}},
)


@router.get("", response_model=PeriodPage)
async def list_periods(
    user: CurrentUser,
    store: HistoryStoreDep,
    limit: int = Query(default=12, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> Any:
    items, total = await store.list_periods(user.user_id, limit=limit, offset=offset)
    return {"items": items, "total": total, "offset": offset, "limit": limit}


@router.post("", response_model=PeriodRead, status_code=201)
async def create_period(
    user: CurrentUser,
    body: PeriodCreate,
    store: HistoryStoreDep,
    forecasts: ForecastServiceDep,
) -> Any:
    row = await store.create_period(
        user.user_id,
        start_date=body.start_date,
        end_date=body.end_date,
        flow_intensity=body.flow_intensity.value if body.flow_intensity else None,
        notes=body.notes,
    )
    await forecasts.invalidate(user.user_id)
    return row


@router.get("/{period_id}", response_model=PeriodRead)
async def get_period(period_id: uuid.UUID, user: CurrentUser, store: HistoryStoreDep) -> Any:
    row = await store.get_period(user.user_id, period_id)
    if not row:
        raise HTTPException(status_code=404, detail="Period not found")
    return row


@router.patch("/{period_id}", response_model=PeriodRead)
async def update_period(
    period_id: uuid.UUID,
    user: CurrentUser,
    body: PeriodUpdate,
    store: HistoryStoreDep,
    forecasts: ForecastServiceDep,
) -> Any:
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    if "start_date" in updates and updates["start_date"] is None:
        raise HTTPException(status_code=400, detail="start_date cannot be cleared")

    existing = await store.get_period(user.user_id, period_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Period not found")

    start = body.start_date if "start_date" in updates else existing["start_date"]
    end = body.end_date if "end_date" in updates else existing["end_date"]
    if start is not None and end is not None and end < start:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    if updates.get("flow_intensity") is not None:
        updates["flow_intensity"] = updates["flow_intensity"].value

    row = await store.update_period(user.user_id, period_id, updates)
    if not row:
        raise HTTPException(status_code=404, detail="Period not found")
    await forecasts.invalidate(user.user_id)
    return row


@router.delete("/{period_id}", status_code=204)
async def delete_period(
    period_id: uuid.UUID,
    user: CurrentUser,
    store: HistoryStoreDep,
    forecasts: ForecastServiceDep,
) -> None:
    deleted = await store.delete_period(user.user_id, period_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Period not found")
    await forecasts.invalidate(user.user_id)


# ---------- Symptoms ----------

@router.post("/{period_id}/symptoms", response_model=SymptomRead, status_code=201)
async def log_symptom(
    period_id: uuid.UUID,
    user: CurrentUser,
    body: SymptomCreate,
    response: Response,
    symptoms: SymptomStoreDep,
) -> Any:
    """Log a symptom; logging a type the period already has updates it (200)."""
    row, created = await symptoms.upsert_symptom(
        user.user_id,
        period_id,
        symptom_date=body.date,
        symptom_type=body.symptom_type.value,
        severity=body.severity,
        notes=body.notes,
    )
    if row is None:
        raise HTTPException(status_code=404, detail="Period not found")
    if not created:
        response.status_code = 200
    return row


@router.get("/{period_id}/symptoms", response_model=list[SymptomRead])
async def list_symptoms(
    period_id: uuid.UUID,
    user: CurrentUser,
    store: HistoryStoreDep,
    symptoms: SymptomStoreDep,
) -> Any:
    if not await store.get_period(user.user_id, period_id):
        raise HTTPException(status_code=404, detail="Period not found")
    return await symptoms.list_symptoms(user.user_id, period_id)
