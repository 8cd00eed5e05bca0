"""CycleCast forecast core.

Pure functions that turn a user's recent period history into a forecast,
plus the cache-aside layer that serves it.

Modules:
    history_filter    Plausible cycle-interval samples from raw records
    cycle_stats       Mean, recency-weighted mean, spread, regularity
    confidence        Statistical, cold-start, and decayed confidence
    flow              Flow intensity vote
    engine            Single-cycle forecast and multi-cycle projection
    payload           JSON-native API payloads
    symptom_patterns  Per-type symptom frequency and severity across periods
    cache             PredictionCache and cache ports
    config_loader     Load/validate/hot-reload forecast_config.yaml
"""

from cyclecast.forecast.cache import (
    CachePort,
    MemoryCachePort,
    NullCachePort,
    PredictionCache,
    prediction_cache_key,
)
from cyclecast.forecast.config_loader import ForecastConfig, get_forecast_config
from cyclecast.forecast.engine import forecast_cycles, forecast_next_cycle
from cyclecast.forecast.errors import (
    CacheUnavailableError,
    ForecastError,
    HistoryUnavailableError,
)
from cyclecast.forecast.types import (
    CycleForecast,
    CycleRecord,
    CycleStats,
    FlowIntensity,
    PredictionResult,
    Regularity,
)

__all__ = [
    "CachePort",
    "MemoryCachePort",
    "NullCachePort",
    "PredictionCache",
    "prediction_cache_key",
    "ForecastConfig",
    "get_forecast_config",
    "forecast_cycles",
    "forecast_next_cycle",
    "CacheUnavailableError",
    "ForecastError",
    "HistoryUnavailableError",
    "CycleForecast",
    "CycleRecord",
    "CycleStats",
    "FlowIntensity",
    "PredictionResult",
    "Regularity",
]
