"""Turn raw period history into plausible cycle-interval samples.

Records arrive newest first.  Each sample is the number of days between a
record's start and the start of the next older record.  Samples outside the
configured plausibility bounds are dropped, never clamped.
"""

from __future__ import annotations

from typing import Sequence

from cyclecast.forecast.config_loader import ForecastConfig, get_forecast_config
from cyclecast.forecast.types import CycleRecord


def recent_records(
    records: Sequence[CycleRecord], config: ForecastConfig | None = None
) -> list[CycleRecord]:
    """Return at most ``history.max_records`` records, newest first."""
    cfg = config or get_forecast_config()
    return list(records[: cfg.history.max_records])


def has_enough_history(
    records: Sequence[CycleRecord], config: ForecastConfig | None = None
) -> bool:
    """True when there are enough raw records for statistical estimation.

    The threshold counts records, not valid samples.  Callers must branch to
    the default forecast when this is False.
    """
    cfg = config or get_forecast_config()
    return len(recent_records(records, cfg)) >= cfg.history.min_records_for_stats


def interval_samples(
    records: Sequence[CycleRecord], config: ForecastConfig | None = None
) -> list[int]:
    """Compute plausible cycle lengths from newest-first records.

    Args:
        records: Period records ordered by start date, newest first.
        config:  Forecast policy (defaults to the global config).

    Returns:
        Interval lengths in days, newest first.  Empty for fewer than two
        records.
    """
    cfg = config or get_forecast_config()
    capped = recent_records(records, cfg)

    samples: list[int] = []
    for newer, older in zip(capped, capped[1:]):
        days = (newer.period_start - older.period_start).days
        if cfg.bounds.is_plausible_cycle(days):
            samples.append(days)
    return samples
