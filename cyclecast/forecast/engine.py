"""Cycle forecast engine.

Combines the history filter, cycle statistics, confidence scorer, and flow
predictor into a single-cycle forecast and a multi-cycle projection.

Usage::

    result = forecast_next_cycle(records)                 # newest first
    print(result.predicted_start, result.confidence)

    for cycle in forecast_cycles(records, cycles=3):
        print(cycle.cycle_number, cycle.prediction.predicted_start)

Fewer than ``history.min_records_for_stats`` records (or no plausible
interval at all) yields a default forecast built from fallback lengths.
Day counts are rounded half up.
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Sequence

from cyclecast.forecast.confidence import (
    cold_start_confidence,
    decay_confidence,
    score_confidence,
)
from cyclecast.forecast.config_loader import ForecastConfig, get_forecast_config
from cyclecast.forecast.cycle_stats import compute_cycle_stats
from cyclecast.forecast.flow import predict_flow_intensity
from cyclecast.forecast.history_filter import (
    has_enough_history,
    interval_samples,
    recent_records,
)
from cyclecast.forecast.types import (
    CycleForecast,
    CycleRecord,
    CycleStats,
    FlowIntensity,
    PredictionResult,
    Regularity,
)

logger = logging.getLogger("cyclecast.forecast.engine")


def round_days(value: float) -> int:
    """Round a day count half up (24.5 → 25)."""
    return int(math.floor(value + 0.5))


def clamp_cycle_count(requested: int | None, config: ForecastConfig | None = None) -> int:
    """Clamp a requested projection length to [1, projection.max_cycles]."""
    pc = (config or get_forecast_config()).projection
    if requested is None:
        return pc.default_cycles
    return max(1, min(requested, pc.max_cycles))


def _place_cycle(
    predicted_start: date,
    period_length_days: int,
    confidence: float,
    flow_intensity: FlowIntensity | None,
    stats: CycleStats,
    is_default: bool,
    config: ForecastConfig,
) -> PredictionResult:
    """Derive end date, ovulation, and fertile window from a start date."""
    fw = config.fertile_window
    ovulation = predicted_start - timedelta(days=fw.luteal_phase_days)
    return PredictionResult(
        predicted_start=predicted_start,
        predicted_end=predicted_start + timedelta(days=period_length_days - 1),
        ovulation_date=ovulation,
        fertile_window_start=ovulation - timedelta(days=fw.days_before_ovulation),
        fertile_window_end=ovulation + timedelta(days=fw.days_after_ovulation),
        confidence=confidence,
        flow_intensity=flow_intensity,
        stats=stats,
        is_default=is_default,
    )


def default_forecast(
    records: Sequence[CycleRecord],
    config: ForecastConfig | None = None,
    *,
    cycle_length_days: int | None = None,
    period_length_days: int | None = None,
    confidence_records: int | None = None,
    as_of: date | None = None,
) -> PredictionResult:
    """Forecast from fallback lengths when history is too thin for statistics.

    Args:
        records:             Period records, newest first (may be empty).
        config:              Forecast policy (defaults to the global config).
        cycle_length_days:   Fallback cycle length (config default if None).
        period_length_days:  Fallback period length (config default if None).
        confidence_records:  Record count fed to the cold-start confidence
                             rule; defaults to the number of records.
        as_of:               Anchor date when there are no records at all.
    """
    cfg = config or get_forecast_config()
    capped = recent_records(records, cfg)
    cycle_length = cycle_length_days or cfg.defaults.cycle_length_days
    period_length = period_length_days or cfg.defaults.period_length_days

    anchor = capped[0].period_start if capped else (as_of or date.today())
    stats = CycleStats(
        mean_cycle_length=float(cycle_length),
        weighted_cycle_length=float(cycle_length),
        std_dev=0.0,
        regularity=Regularity.irregular,
        avg_period_length=float(period_length),
        sample_count=len(interval_samples(capped, cfg)),
    )
    count = len(capped) if confidence_records is None else confidence_records
    return _place_cycle(
        predicted_start=anchor + timedelta(days=cycle_length),
        period_length_days=period_length,
        confidence=cold_start_confidence(count, cfg),
        flow_intensity=None,
        stats=stats,
        is_default=True,
        config=cfg,
    )


def forecast_next_cycle(
    records: Sequence[CycleRecord],
    config: ForecastConfig | None = None,
    *,
    fallback_cycle_length: int | None = None,
    fallback_period_length: int | None = None,
    as_of: date | None = None,
) -> PredictionResult:
    """Forecast the next cycle from newest-first, end-dated period records.

    Args:
        records:                Period records ordered newest first.
        config:                 Forecast policy (defaults to the global config).
        fallback_cycle_length:  Cycle length for the default forecast.
        fallback_period_length: Period length for the default forecast.
        as_of:                  Anchor for the default forecast without records.
    """
    cfg = config or get_forecast_config()
    capped = recent_records(records, cfg)

    if not has_enough_history(capped, cfg):
        logger.info(
            "Only %d record(s) available; using default forecast", len(capped)
        )
        return default_forecast(
            capped,
            cfg,
            cycle_length_days=fallback_cycle_length,
            period_length_days=fallback_period_length,
            as_of=as_of,
        )

    stats = compute_cycle_stats(capped, cfg)
    if stats.sample_count == 0:
        logger.info(
            "No plausible intervals in %d records; using default forecast", len(capped)
        )
        return default_forecast(
            capped,
            cfg,
            cycle_length_days=fallback_cycle_length,
            period_length_days=fallback_period_length,
            confidence_records=0,
            as_of=as_of,
        )

    confidence = score_confidence(
        stats.std_dev, stats.sample_count, stats.weighted_cycle_length, cfg
    )
    return _place_cycle(
        predicted_start=capped[0].period_start
        + timedelta(days=round_days(stats.weighted_cycle_length)),
        period_length_days=round_days(stats.avg_period_length),
        confidence=confidence,
        flow_intensity=predict_flow_intensity(capped, cfg),
        stats=stats,
        is_default=False,
        config=cfg,
    )


def forecast_cycles(
    records: Sequence[CycleRecord],
    cycles: int | None = None,
    config: ForecastConfig | None = None,
    *,
    fallback_cycle_length: int | None = None,
    fallback_period_length: int | None = None,
    as_of: date | None = None,
) -> list[CycleForecast]:
    """Project several upcoming cycles.

    Cycle 1 is ``forecast_next_cycle``.  Every later cycle starts one rounded
    weighted cycle length after the previous one, keeps cycle 1's flow, and
    carries a decayed confidence.

    Args:
        records: Period records ordered newest first.
        cycles:  Requested number of cycles, clamped to [1, max_cycles].
    """
    cfg = config or get_forecast_config()
    count = clamp_cycle_count(cycles, cfg)

    first = forecast_next_cycle(
        records,
        cfg,
        fallback_cycle_length=fallback_cycle_length,
        fallback_period_length=fallback_period_length,
        as_of=as_of,
    )
    step = timedelta(days=round_days(first.stats.weighted_cycle_length))
    period_length = round_days(first.stats.avg_period_length)

    projection = [CycleForecast(cycle_number=1, prediction=first)]
    for cycle_number in range(2, count + 1):
        previous = projection[-1].prediction
        projection.append(
            CycleForecast(
                cycle_number=cycle_number,
                prediction=_place_cycle(
                    predicted_start=previous.predicted_start + step,
                    period_length_days=period_length,
                    confidence=decay_confidence(first.confidence, cycle_number, cfg),
                    flow_intensity=first.flow_intensity,
                    stats=first.stats,
                    is_default=first.is_default,
                    config=cfg,
                ),
            )
        )
    return projection
