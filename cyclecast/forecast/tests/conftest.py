"""Shared fixtures for the forecast core, cache, service, and API tests."""

from __future__ import annotations

import os

TEST_JWT_SECRET = "cyclecast-test-secret-0123456789abcdef"

os.environ.setdefault("JWT_SECRET", TEST_JWT_SECRET)
os.environ.setdefault("CACHE_BACKEND", "none")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Sequence

import pytest

from cyclecast.forecast.cache import MemoryCachePort, PredictionCache
from cyclecast.forecast.config_loader import ForecastConfig, load_forecast_config
from cyclecast.forecast.errors import HistoryUnavailableError
from cyclecast.forecast.types import (
    CycleRecord,
    CycleStats,
    FlowIntensity,
    PredictionResult,
    SymptomEntry,
    SymptomType,
)

# Canonical test user and anchor date
TEST_USER_ID = uuid.UUID("12345678-1234-5678-1234-567812345678")
LATEST_START = date(2026, 9, 1)

# Intervals (newest first) from the reference scenarios
SCENARIO_A_INTERVALS = [22, 25, 24, 26, 22, 27, 21, 25, 22, 35]
SCENARIO_B_INTERVALS = [28, 27, 27, 29, 28, 26, 28, 29]


def records_from_intervals(
    intervals: Sequence[int],
    latest_start: date = LATEST_START,
    period_days: int | None = 5,
    flows: Sequence[FlowIntensity | None] | None = None,
) -> list[CycleRecord]:
    """Build newest-first records whose consecutive starts differ by ``intervals``."""
    starts = [latest_start]
    for days in intervals:
        starts.append(starts[-1] - timedelta(days=days))

    records = []
    for i, start in enumerate(starts):
        end = start + timedelta(days=period_days - 1) if period_days else None
        flow = flows[i] if flows is not None and i < len(flows) else None
        records.append(CycleRecord(period_start=start, period_end=end, flow_intensity=flow))
    return records


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHistoryStore:
    """In-memory stand-in for PostgresHistoryStore."""

    def __init__(
        self,
        records: list[CycleRecord] | None = None,
        fallback: tuple[int | None, int | None] = (None, None),
    ) -> None:
        self.records = list(records or [])
        self.fallback = fallback
        self.available = True
        self.fetch_calls = 0
        self.saved: list[PredictionResult] = []
        self.averages: list[CycleStats] = []
        self.rows: dict[uuid.UUID, dict[str, Any]] = {}

    def _check(self) -> None:
        if not self.available:
            raise HistoryUnavailableError("Period history unavailable (test)")

    async def fetch_recent_cycles(self, user_id: uuid.UUID) -> list[CycleRecord]:
        self._check()
        self.fetch_calls += 1
        return sorted(self.records, key=lambda r: r.period_start, reverse=True)[:12]

    async def fetch_fallback_lengths(self, user_id: uuid.UUID) -> tuple[int | None, int | None]:
        self._check()
        return self.fallback

    async def save_prediction(self, user_id: uuid.UUID, result: PredictionResult) -> None:
        self._check()
        self.saved.append(result)

    async def update_cycle_averages(self, user_id: uuid.UUID, stats: CycleStats) -> None:
        self._check()
        self.averages.append(stats)

    async def list_periods(
        self, user_id: uuid.UUID, limit: int, offset: int
    ) -> tuple[list[dict[str, Any]], int]:
        self._check()
        rows = sorted(self.rows.values(), key=lambda r: r["start_date"], reverse=True)
        return rows[offset : offset + limit], len(rows)

    async def get_period(self, user_id: uuid.UUID, period_id: uuid.UUID) -> dict[str, Any] | None:
        self._check()
        return self.rows.get(period_id)

    async def create_period(
        self,
        user_id: uuid.UUID,
        start_date: date,
        end_date: date | None,
        flow_intensity: str | None,
        notes: str | None,
    ) -> dict[str, Any]:
        self._check()
        row = {
            "id": uuid.uuid4(),
            "user_id": user_id,
            "start_date": start_date,
            "end_date": end_date,
            "flow_intensity": flow_intensity,
            "notes": notes,
            "created_at": datetime.now(timezone.utc),
            "updated_at": None,
        }
        self.rows[row["id"]] = row
        if end_date is not None:
            self.records.append(
                CycleRecord(
                    period_start=start_date,
                    period_end=end_date,
                    flow_intensity=FlowIntensity(flow_intensity) if flow_intensity else None,
                )
            )
        return row

    async def update_period(
        self, user_id: uuid.UUID, period_id: uuid.UUID, updates: dict[str, Any]
    ) -> dict[str, Any] | None:
        self._check()
        row = self.rows.get(period_id)
        if row is None:
            return None
        row.update(updates)
        return row

    async def delete_period(self, user_id: uuid.UUID, period_id: uuid.UUID) -> bool:
        self._check()
        return self.rows.pop(period_id, None) is not None


class FakeSymptomStore:
    """In-memory stand-in for PostgresSymptomStore over a FakeHistoryStore's periods."""

    def __init__(self, periods: FakeHistoryStore) -> None:
        self.periods = periods
        self.rows: dict[uuid.UUID, dict[str, Any]] = {}

    async def list_symptoms(
        self, user_id: uuid.UUID, period_id: uuid.UUID
    ) -> list[dict[str, Any]]:
        self.periods._check()
        rows = [r for r in self.rows.values() if r["period_id"] == period_id]
        return sorted(rows, key=lambda r: r["date"])

    async def upsert_symptom(
        self,
        user_id: uuid.UUID,
        period_id: uuid.UUID,
        symptom_date: date,
        symptom_type: str,
        severity: int,
        notes: str | None,
    ) -> tuple[dict[str, Any] | None, bool]:
        self.periods._check()
        if period_id not in self.periods.rows:
            return None, False
        for row in self.rows.values():
            if row["period_id"] == period_id and row["symptom_type"] == symptom_type:
                row.update(date=symptom_date, severity=severity, notes=notes)
                return row, False
        row = {
            "id": uuid.uuid4(),
            "period_id": period_id,
            "date": symptom_date,
            "symptom_type": symptom_type,
            "severity": severity,
            "notes": notes,
        }
        self.rows[row["id"]] = row
        return row, True

    async def delete_symptom(self, user_id: uuid.UUID, symptom_id: uuid.UUID) -> bool:
        self.periods._check()
        return self.rows.pop(symptom_id, None) is not None

    async def fetch_symptom_entries(self, user_id: uuid.UUID) -> tuple[list[SymptomEntry], int]:
        self.periods._check()
        starts = {pid: p["start_date"] for pid, p in self.periods.rows.items()}
        rows = sorted(
            (r for r in self.rows.values() if r["period_id"] in starts), key=lambda r: r["date"]
        )
        rows.sort(key=lambda r: starts[r["period_id"]], reverse=True)
        entries = [
            SymptomEntry(symptom_type=SymptomType(r["symptom_type"]), severity=r["severity"])
            for r in rows
        ]
        return entries, len(self.periods.rows)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def forecast_config() -> ForecastConfig:
    """Load the real bundled forecast config."""
    return load_forecast_config()


@pytest.fixture
def scenario_a_records() -> list[CycleRecord]:
    return records_from_intervals(SCENARIO_A_INTERVALS)


@pytest.fixture
def scenario_b_records() -> list[CycleRecord]:
    return records_from_intervals(SCENARIO_B_INTERVALS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_port(clock: FakeClock) -> MemoryCachePort:
    return MemoryCachePort(clock=clock)


@pytest.fixture
def prediction_cache(memory_port: MemoryCachePort) -> PredictionCache:
    return PredictionCache(memory_port)


@pytest.fixture
def history_store(scenario_b_records: list[CycleRecord]) -> FakeHistoryStore:
    return FakeHistoryStore(records=scenario_b_records)


@pytest.fixture
def symptom_store(history_store: FakeHistoryStore) -> FakeSymptomStore:
    return FakeSymptomStore(history_store)
