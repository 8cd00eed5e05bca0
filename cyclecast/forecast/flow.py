"""Predict the flow intensity of the next period.

Votes over the most recent records that carry a flow category: one point
per record, plus a recency bonus for the newest few.  Ties go to the category
seen most recently.  No logged flow at all yields None, which callers must
treat as "no data" rather than as a default category.
"""

from __future__ import annotations

from typing import Sequence

from cyclecast.forecast.config_loader import ForecastConfig, get_forecast_config
from cyclecast.forecast.types import CycleRecord, FlowIntensity


def predict_flow_intensity(
    records: Sequence[CycleRecord], config: ForecastConfig | None = None
) -> FlowIntensity | None:
    """Return the most likely flow category, or None without flow data.

    Args:
        records: Period records, newest first.
        config:  Forecast policy (defaults to the global config).
    """
    fc = (config or get_forecast_config()).flow
    flows = [r.flow_intensity for r in records if r.flow_intensity is not None][: fc.max_records]
    if not flows:
        return None

    # dict preserves insertion order, so iteration follows recency
    tally: dict[FlowIntensity, float] = {}
    for flow in flows:
        tally[flow] = tally.get(flow, 0.0) + 1.0
    for flow in flows[: fc.recent_records]:
        tally[flow] += fc.recent_bonus

    best = max(tally.values())
    return next(flow for flow, score in tally.items() if score == best)
