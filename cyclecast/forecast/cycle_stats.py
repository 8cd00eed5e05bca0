"""Cycle statistics: mean, recency-weighted mean, spread, and regularity.

All functions are pure.  Interval samples are expected newest first, as
produced by ``history_filter.interval_samples``.

Recency weighting uses three fixed tiers::

    n <= 3      mean of all samples
    4 <= n <= 6 recent3 * 0.7 + rest * 0.3
    n >= 7      recent3 * 0.5 + next3 * 0.3 + rest * 0.2
"""

from __future__ import annotations

import logging
import statistics
from typing import Sequence

from cyclecast.forecast.config_loader import ForecastConfig, get_forecast_config
from cyclecast.forecast.history_filter import interval_samples, recent_records
from cyclecast.forecast.types import CycleRecord, CycleStats, Regularity

logger = logging.getLogger("cyclecast.forecast.cycle_stats")

TIER_SIZE = 3
TWO_TIER_WEIGHTS = (0.7, 0.3)
THREE_TIER_WEIGHTS = (0.5, 0.3, 0.2)


def mean(samples: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if not samples:
        return 0.0
    return statistics.fmean(samples)


def weighted_mean(samples: Sequence[float]) -> float:
    """Recency-tiered mean of newest-first samples."""
    n = len(samples)
    if n <= TIER_SIZE:
        return mean(samples)

    recent = samples[:TIER_SIZE]
    if n <= 2 * TIER_SIZE:
        w_recent, w_rest = TWO_TIER_WEIGHTS
        return mean(recent) * w_recent + mean(samples[TIER_SIZE:]) * w_rest

    w_recent, w_middle, w_older = THREE_TIER_WEIGHTS
    middle = samples[TIER_SIZE : 2 * TIER_SIZE]
    older = samples[2 * TIER_SIZE :]
    return mean(recent) * w_recent + mean(middle) * w_middle + mean(older) * w_older


def population_std(samples: Sequence[float]) -> float:
    """Population standard deviation around the unweighted mean."""
    if not samples:
        return 0.0
    return statistics.pstdev(samples)


def classify_regularity(std_dev: float, config: ForecastConfig | None = None) -> Regularity:
    """Map a standard deviation (days) onto the four regularity tags."""
    thresholds = (config or get_forecast_config()).regularity
    if std_dev < thresholds.very_regular_below:
        return Regularity.very_regular
    if std_dev < thresholds.regular_below:
        return Regularity.regular
    if std_dev < thresholds.somewhat_irregular_below:
        return Regularity.somewhat_irregular
    return Regularity.irregular


def average_period_length(
    records: Sequence[CycleRecord], config: ForecastConfig | None = None
) -> float:
    """Mean plausible period duration, or the configured default if none qualify."""
    cfg = config or get_forecast_config()
    durations = [
        d
        for d in (r.duration_days for r in recent_records(records, cfg))
        if d is not None and cfg.bounds.is_plausible_period(d)
    ]
    if not durations:
        return float(cfg.defaults.period_length_days)
    return mean(durations)


def compute_cycle_stats(
    records: Sequence[CycleRecord], config: ForecastConfig | None = None
) -> CycleStats:
    """Build CycleStats from newest-first period records.

    ``sample_count`` is the number of intervals that survived filtering,
    not the number of records.
    """
    cfg = config or get_forecast_config()
    samples = interval_samples(records, cfg)
    std_dev = population_std(samples)

    stats = CycleStats(
        mean_cycle_length=mean(samples),
        weighted_cycle_length=weighted_mean(samples),
        std_dev=std_dev,
        regularity=classify_regularity(std_dev, cfg),
        avg_period_length=average_period_length(records, cfg),
        sample_count=len(samples),
    )
    logger.debug(
        "Cycle stats: n=%d mean=%.2f weighted=%.2f std=%.2f (%s)",
        stats.sample_count,
        stats.mean_cycle_length,
        stats.weighted_cycle_length,
        stats.std_dev,
        stats.regularity.value,
    )
    return stats
