"""Forecast service: history store + forecast engine + prediction cache.

The single-cycle forecast is served cache-aside under ``predictions:<user>``.
Statistical forecasts are also appended to the prediction history and the
user's rounded averages are refreshed, so later cold-start forecasts can fall
back to them.  Any history store failure aborts the request.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from cyclecast.forecast.cache import PredictionCache
from cyclecast.forecast.config_loader import ForecastConfig, get_forecast_config
from cyclecast.forecast.engine import forecast_cycles, forecast_next_cycle
from cyclecast.forecast.payload import calendar_payload, prediction_payload
from cyclecast.services.history import HistoryStore

logger = logging.getLogger("cyclecast.forecasting")


class ForecastService:
    """Serve forecasts for one request.

    Args:
        store:  History collaborator (records in, predictions out).
        cache:  Prediction cache fronting the single-cycle forecast.
        config: Forecast policy (defaults to the global config).
    """

    def __init__(
        self,
        store: HistoryStore,
        cache: PredictionCache,
        config: ForecastConfig | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._config = config or get_forecast_config()

    async def next_cycle(self, user_id: uuid.UUID) -> tuple[dict[str, Any], bool]:
        """Return ``(payload, served_from_cache)`` for the user's next cycle."""
        return await self._cache.get_or_compute(
            user_id, lambda: self._compute_next_cycle(user_id)
        )

    async def calendar(self, user_id: uuid.UUID, cycles: int | None = None) -> dict[str, Any]:
        """Project up to ``projection.max_cycles`` cycles (not cached)."""
        records = await self._store.fetch_recent_cycles(user_id)
        fallback_cycle, fallback_period = await self._store.fetch_fallback_lengths(user_id)
        forecasts = forecast_cycles(
            records,
            cycles,
            self._config,
            fallback_cycle_length=fallback_cycle,
            fallback_period_length=fallback_period,
        )
        return calendar_payload(forecasts)

    async def invalidate(self, user_id: uuid.UUID) -> None:
        """Call after any write to the user's period history."""
        await self._cache.invalidate(user_id)

    async def _compute_next_cycle(self, user_id: uuid.UUID) -> dict[str, Any]:
        records = await self._store.fetch_recent_cycles(user_id)
        fallback_cycle, fallback_period = await self._store.fetch_fallback_lengths(user_id)
        result = forecast_next_cycle(
            records,
            self._config,
            fallback_cycle_length=fallback_cycle,
            fallback_period_length=fallback_period,
        )

        if not result.is_default:
            await self._store.save_prediction(user_id, result)
            await self._store.update_cycle_averages(user_id, result.stats)

        logger.info(
            "Forecast for %s: start=%s confidence=%.2f default=%s",
            user_id,
            result.predicted_start,
            result.confidence,
            result.is_default,
        )
        return prediction_payload(result)
