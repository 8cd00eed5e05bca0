"""Forecast confidence scoring.

Three separate rules:

- ``score_confidence``       statistical forecasts, clamped to [0.40, 0.95]
- ``cold_start_confidence``  default forecasts, grows with record count and is
                             not clamped from above
- ``decay_confidence``       later cycles of a multi-cycle projection
"""

from __future__ import annotations

from cyclecast.forecast.config_loader import ForecastConfig, get_forecast_config
from cyclecast.forecast.cycle_stats import classify_regularity


def score_confidence(
    std_dev: float,
    sample_count: int,
    weighted_cycle_length: float,
    config: ForecastConfig | None = None,
) -> float:
    """Score a statistical forecast.

    base(regularity) + data boost + typicality adjustment, clamped to the
    configured [min, max].

    Args:
        std_dev:               Population std dev of the valid intervals.
        sample_count:          Number of valid intervals.
        weighted_cycle_length: Recency-weighted mean interval length.
        config:                Forecast policy (defaults to the global config).
    """
    cfg = config or get_forecast_config()
    cc = cfg.confidence

    base = cc.base_for(classify_regularity(std_dev, cfg))
    data_boost = min(sample_count / cc.full_data_samples, 1.0) * cc.data_boost_max
    typical = cc.typical_cycle_min_days <= weighted_cycle_length <= cc.typical_cycle_max_days
    adjustment = 0.0 if typical else -cc.atypical_penalty

    return max(cc.min, min(cc.max, base + data_boost + adjustment))


def cold_start_confidence(record_count: int, config: ForecastConfig | None = None) -> float:
    """Confidence for a default forecast: 0.40 + 0.10 per record.

    Only bounded by how few records can reach the cold-start path, so values
    above the statistical ceiling are possible here.
    """
    cc = (config or get_forecast_config()).confidence
    return cc.cold_start_base + cc.cold_start_per_record * record_count


def decay_confidence(
    first_cycle_confidence: float, cycle_number: int, config: ForecastConfig | None = None
) -> float:
    """Confidence of the ``cycle_number``-th projected cycle (1-based)."""
    cc = (config or get_forecast_config()).confidence
    decayed = first_cycle_confidence * cc.decay_per_cycle ** (cycle_number - 1)
    return max(decayed, cc.min)
