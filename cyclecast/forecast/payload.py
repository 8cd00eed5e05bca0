"""Render forecasts into the JSON-native payloads served and cached by the API.

Payloads contain only str/int/float/None values so that a payload read back
from the cache is identical to the one that was written.
"""

from __future__ import annotations

from typing import Any, Sequence

from cyclecast.forecast.engine import round_days
from cyclecast.forecast.types import CycleForecast, CycleStats, PredictionResult

CONFIDENCE_DECIMALS = 4


def stats_payload(stats: CycleStats) -> dict[str, Any]:
    return {
        "avg_cycle_length": round_days(stats.mean_cycle_length),
        "avg_period_length": round_days(stats.avg_period_length),
        "cycle_regularity": stats.regularity.value,
        "standard_deviation": f"{stats.std_dev:.2f}",
        "cycles_tracked": stats.sample_count,
    }


def _cycle_payload(result: PredictionResult) -> dict[str, Any]:
    return {
        "next_period": {
            "predicted_start_date": result.predicted_start.isoformat(),
            "predicted_end_date": result.predicted_end.isoformat(),
            "confidence_score": round(result.confidence, CONFIDENCE_DECIMALS),
            "predicted_flow_intensity": (
                result.flow_intensity.value if result.flow_intensity else None
            ),
        },
        "fertile_window": {
            "start_date": result.fertile_window_start.isoformat(),
            "end_date": result.fertile_window_end.isoformat(),
        },
    }


def prediction_payload(result: PredictionResult) -> dict[str, Any]:
    """Payload for a single next-cycle forecast."""
    payload = _cycle_payload(result)
    payload["cycle_stats"] = stats_payload(result.stats)
    return payload


def calendar_payload(forecasts: Sequence[CycleForecast]) -> dict[str, Any]:
    """Payload for a multi-cycle projection sharing one stats object."""
    if not forecasts:
        raise ValueError("calendar_payload() needs at least one forecast")
    return {
        "predictions": [
            {"cycle_number": f.cycle_number, **_cycle_payload(f.prediction)}
            for f in forecasts
        ],
        "cycle_stats": stats_payload(forecasts[0].prediction.stats),
    }
