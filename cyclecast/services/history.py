"""Period history store backed by Postgres.

This is the forecast core's only upstream: it supplies the newest-first,
end-dated ``CycleRecord`` snapshots, the user's stored fallback lengths, and
persists each computed forecast.  Connection-level failures surface as
``HistoryUnavailableError`` so the whole request fails instead of returning a
partial forecast.

The symptom store lives here too, since symptoms hang off logged periods and
share the same failure handling.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, AsyncGenerator, Protocol

import asyncpg

from cyclecast.forecast.config_loader import ForecastConfig, get_forecast_config
from cyclecast.forecast.engine import round_days
from cyclecast.forecast.errors import HistoryUnavailableError
from cyclecast.forecast.types import (
    CycleRecord,
    CycleStats,
    FlowIntensity,
    PredictionResult,
    SymptomEntry,
    SymptomType,
)
from cyclecast.services.db import (
    PoolNotInitializedError,
    execute,
    fetch,
    fetchrow,
    get_connection,
)

logger = logging.getLogger("cyclecast.history")

# Columns a PATCH may touch
_UPDATABLE_COLUMNS = frozenset({"start_date", "end_date", "flow_intensity", "notes"})

_UPSTREAM_ERRORS: tuple[type[BaseException], ...] = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.InterfaceError,
    PoolNotInitializedError,
)


class HistoryStore(Protocol):
    """What the forecast service needs from the history collaborator."""

    async def fetch_recent_cycles(self, user_id: uuid.UUID) -> list[CycleRecord]: ...

    async def fetch_fallback_lengths(
        self, user_id: uuid.UUID
    ) -> tuple[int | None, int | None]: ...

    async def save_prediction(self, user_id: uuid.UUID, result: PredictionResult) -> None: ...

    async def update_cycle_averages(self, user_id: uuid.UUID, stats: CycleStats) -> None: ...


@asynccontextmanager
async def _upstream(operation: str) -> AsyncGenerator[None, None]:
    try:
        yield
    except _UPSTREAM_ERRORS as exc:
        logger.error("History store unavailable during %s: %s", operation, exc)
        raise HistoryUnavailableError(f"Period history unavailable ({operation})") from exc


def _parse_flow(value: str | None) -> FlowIntensity | None:
    """Stored flow value as an enum; unknown values are ignored."""
    if not value:
        return None
    try:
        return FlowIntensity(value)
    except ValueError:
        logger.warning("Ignoring unknown flow intensity %r", value)
        return None


def _record_from_row(row: asyncpg.Record | dict) -> CycleRecord:
    return CycleRecord(
        period_start=row["start_date"],
        period_end=row["end_date"],
        flow_intensity=_parse_flow(row["flow_intensity"]),
    )


class PostgresHistoryStore:
    """Reads and writes the ``periods``, ``predictions`` and ``user_settings`` tables.

    Args:
        config: Forecast policy; its ``history.max_records`` bounds the cycle
                query (defaults to the global config).
    """

    def __init__(self, config: ForecastConfig | None = None) -> None:
        self._config = config

    # ---------- Forecast inputs / outputs ----------

    async def fetch_recent_cycles(self, user_id: uuid.UUID) -> list[CycleRecord]:
        """Return the user's most recent end-dated periods, newest first."""
        async with _upstream("fetch_recent_cycles"):
            rows = await fetch(
                """
                SELECT start_date, end_date, flow_intensity
                FROM periods
                WHERE user_id = $1 AND end_date IS NOT NULL
                ORDER BY start_date DESC
                LIMIT $2
                """,
                user_id,
                (self._config or get_forecast_config()).history.max_records,
            )
        return [_record_from_row(r) for r in rows]

    async def fetch_fallback_lengths(
        self, user_id: uuid.UUID
    ) -> tuple[int | None, int | None]:
        """Return the user's stored (cycle, period) averages, if any."""
        async with _upstream("fetch_fallback_lengths"):
            row = await fetchrow(
                "SELECT avg_cycle_length, avg_period_length FROM user_settings WHERE user_id = $1",
                user_id,
            )
        if row is None:
            return None, None
        return row["avg_cycle_length"], row["avg_period_length"]

    async def save_prediction(self, user_id: uuid.UUID, result: PredictionResult) -> None:
        """Append a computed forecast to the prediction history."""
        async with _upstream("save_prediction"):
            await execute(
                """
                INSERT INTO predictions (
                    id, user_id, predicted_start_date, predicted_end_date,
                    ovulation_start, ovulation_end, confidence_score,
                    predicted_flow_intensity, created_at
                )
                VALUES (gen_random_uuid(), $1, $2, $3, $4, $5, $6, $7, NOW())
                """,
                user_id,
                result.predicted_start,
                result.predicted_end,
                result.fertile_window_start,
                result.fertile_window_end,
                result.confidence,
                result.flow_intensity.value if result.flow_intensity else None,
            )

    async def update_cycle_averages(self, user_id: uuid.UUID, stats: CycleStats) -> None:
        """Upsert the user's rounded cycle and period averages."""
        async with _upstream("update_cycle_averages"):
            await execute(
                """
                INSERT INTO user_settings (
                    id, user_id, avg_cycle_length, avg_period_length,
                    last_calculated_at, created_at, updated_at
                )
                VALUES (gen_random_uuid(), $1, $2, $3, NOW(), NOW(), NOW())
                ON CONFLICT (user_id) DO UPDATE SET
                    avg_cycle_length = EXCLUDED.avg_cycle_length,
                    avg_period_length = EXCLUDED.avg_period_length,
                    last_calculated_at = NOW(),
                    updated_at = NOW()
                """,
                user_id,
                round_days(stats.mean_cycle_length),
                round_days(stats.avg_period_length),
            )

    # ---------- Period CRUD ----------

    async def list_periods(
        self, user_id: uuid.UUID, limit: int, offset: int
    ) -> tuple[list[dict[str, Any]], int]:
        async with _upstream("list_periods"):
            rows = await fetch(
                """
                SELECT *, COUNT(*) OVER () AS total_count
                FROM periods
                WHERE user_id = $1
                ORDER BY start_date DESC
                LIMIT $2 OFFSET $3
                """,
                user_id,
                limit,
                offset,
            )
        total = rows[0]["total_count"] if rows else 0
        return [{k: v for k, v in dict(r).items() if k != "total_count"} for r in rows], total

    async def get_period(self, user_id: uuid.UUID, period_id: uuid.UUID) -> dict[str, Any] | None:
        async with _upstream("get_period"):
            row = await fetchrow(
                "SELECT * FROM periods WHERE id = $1 AND user_id = $2",
                period_id,
                user_id,
            )
        return dict(row) if row else None

    async def create_period(
        self,
        user_id: uuid.UUID,
        start_date: date,
        end_date: date | None,
        flow_intensity: str | None,
        notes: str | None,
    ) -> dict[str, Any]:
        async with _upstream("create_period"):
            row = await fetchrow(
                """
                INSERT INTO periods (
                    id, user_id, start_date, end_date, flow_intensity, notes,
                    created_at, updated_at
                )
                VALUES (gen_random_uuid(), $1, $2, $3, $4, $5, NOW(), NOW())
                RETURNING *
                """,
                user_id,
                start_date,
                end_date,
                flow_intensity,
                notes,
            )
        return dict(row)

    async def update_period(
        self, user_id: uuid.UUID, period_id: uuid.UUID, updates: dict[str, Any]
    ) -> dict[str, Any] | None:
        set_clauses = []
        params: list[Any] = [user_id, period_id]
        columns = [(k, v) for k, v in updates.items() if k in _UPDATABLE_COLUMNS]
        for i, (key, value) in enumerate(columns, start=3):
            set_clauses.append(f"{key} = ${i}")
            params.append(value)
        set_clauses.append("updated_at = NOW()")

        async with _upstream("update_period"):
            row = await fetchrow(
                f"UPDATE periods SET {', '.join(set_clauses)} "
                "WHERE user_id = $1 AND id = $2 RETURNING *",
                *params,
            )
        return dict(row) if row else None

    async def delete_period(self, user_id: uuid.UUID, period_id: uuid.UUID) -> bool:
        async with _upstream("delete_period"):
            result = await execute(
                "DELETE FROM periods WHERE id = $1 AND user_id = $2",
                period_id,
                user_id,
            )
        return result != "DELETE 0"


class PostgresSymptomStore:
    """Reads and writes the ``symptoms`` table.

    Every query joins ``periods`` on ``user_id`` so a user can only reach
    symptoms of their own periods.  A period holds at most one symptom of
    each type; logging the same type again updates it.
    """

    async def list_symptoms(
        self, user_id: uuid.UUID, period_id: uuid.UUID
    ) -> list[dict[str, Any]]:
        async with _upstream("list_symptoms"):
            rows = await fetch(
                """
                SELECT s.*
                FROM symptoms s
                JOIN periods p ON p.id = s.period_id
                WHERE s.period_id = $1 AND p.user_id = $2
                ORDER BY s.date ASC
                """,
                period_id,
                user_id,
            )
        return [dict(r) for r in rows]

    async def upsert_symptom(
        self,
        user_id: uuid.UUID,
        period_id: uuid.UUID,
        symptom_date: date,
        symptom_type: str,
        severity: int,
        notes: str | None,
    ) -> tuple[dict[str, Any] | None, bool]:
        """Log a symptom on one of the user's periods.

        Returns:
            ``(row, created)``; ``row`` is None when the period is not the user's.
        """
        async with _upstream("upsert_symptom"):
            async with get_connection() as conn:
                owned = await conn.fetchrow(
                    "SELECT id FROM periods WHERE id = $1 AND user_id = $2",
                    period_id,
                    user_id,
                )
                if owned is None:
                    return None, False

                row = await conn.fetchrow(
                    """
                    UPDATE symptoms SET date = $3, severity = $4, notes = $5
                    WHERE period_id = $1 AND symptom_type = $2
                    RETURNING *
                    """,
                    period_id,
                    symptom_type,
                    symptom_date,
                    severity,
                    notes,
                )
                if row is not None:
                    return dict(row), False

                row = await conn.fetchrow(
                    """
                    INSERT INTO symptoms (id, period_id, date, symptom_type, severity, notes)
                    VALUES (gen_random_uuid(), $1, $2, $3, $4, $5)
                    RETURNING *
                    """,
                    period_id,
                    symptom_date,
                    symptom_type,
                    severity,
                    notes,
                )
        return dict(row), True

    async def delete_symptom(self, user_id: uuid.UUID, symptom_id: uuid.UUID) -> bool:
        async with _upstream("delete_symptom"):
            result = await execute(
                """
                DELETE FROM symptoms s
                USING periods p
                WHERE s.id = $1 AND p.id = s.period_id AND p.user_id = $2
                """,
                symptom_id,
                user_id,
            )
        return result != "DELETE 0"

    async def fetch_symptom_entries(
        self, user_id: uuid.UUID
    ) -> tuple[list[SymptomEntry], int]:
        """Return every logged symptom (periods newest first) and the period count."""
        async with _upstream("fetch_symptom_entries"):
            rows = await fetch(
                """
                SELECT s.symptom_type, s.severity
                FROM symptoms s
                JOIN periods p ON p.id = s.period_id
                WHERE p.user_id = $1
                ORDER BY p.start_date DESC, s.date ASC
                """,
                user_id,
            )
            count = await fetchrow("SELECT COUNT(*) AS total FROM periods WHERE user_id = $1", user_id)

        entries = []
        for r in rows:
            try:
                symptom_type = SymptomType(r["symptom_type"])
            except ValueError:
                logger.warning("Ignoring unknown symptom type %r", r["symptom_type"])
                continue
            entries.append(SymptomEntry(symptom_type=symptom_type, severity=r["severity"]))
        return entries, count["total"] if count else 0
