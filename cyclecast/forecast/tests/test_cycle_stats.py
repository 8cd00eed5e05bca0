"""Tests for the history filter and cycle statistics."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from cyclecast.forecast.config_loader import ForecastConfig
from cyclecast.forecast.cycle_stats import (
    average_period_length,
    classify_regularity,
    compute_cycle_stats,
    mean,
    population_std,
    weighted_mean,
)
from cyclecast.forecast.history_filter import (
    has_enough_history,
    interval_samples,
    recent_records,
)
from cyclecast.forecast.tests.conftest import (
    SCENARIO_A_INTERVALS,
    SCENARIO_B_INTERVALS,
    records_from_intervals,
)
from cyclecast.forecast.types import CycleRecord, Regularity


# ---------------------------------------------------------------------------
# History filter
# ---------------------------------------------------------------------------


class TestIntervalSamples:
    def test_intervals_are_newest_first(self, forecast_config: ForecastConfig) -> None:
        records = records_from_intervals([30, 26, 28])
        assert interval_samples(records, forecast_config) == [30, 26, 28]

    def test_out_of_range_intervals_dropped_not_clamped(
        self, forecast_config: ForecastConfig
    ) -> None:
        records = records_from_intervals([20, 21, 45, 46, 60, 28])
        assert interval_samples(records, forecast_config) == [21, 45, 28]

    def test_single_record_yields_no_samples(self, forecast_config: ForecastConfig) -> None:
        records = records_from_intervals([])
        assert len(records) == 1
        assert interval_samples(records, forecast_config) == []

    def test_empty_history_yields_no_samples(self, forecast_config: ForecastConfig) -> None:
        assert interval_samples([], forecast_config) == []

    def test_history_capped_to_twelve_records(self, forecast_config: ForecastConfig) -> None:
        records = records_from_intervals([28] * 15)  # 16 records
        assert len(recent_records(records, forecast_config)) == 12
        assert len(interval_samples(records, forecast_config)) == 11

    def test_enough_history_counts_records_not_samples(
        self, forecast_config: ForecastConfig
    ) -> None:
        # Three records whose intervals are both implausible still count
        records = records_from_intervals([60, 70])
        assert interval_samples(records, forecast_config) == []
        assert has_enough_history(records, forecast_config)
        assert not has_enough_history(records[:2], forecast_config)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class TestWeightedMean:
    @pytest.mark.parametrize("samples", [[28], [30, 26], [25, 30, 35]])
    def test_three_or_fewer_samples_equal_plain_mean(self, samples: list[int]) -> None:
        assert weighted_mean(samples) == pytest.approx(mean(samples))

    def test_two_tier_weighting(self) -> None:
        # recent3 = 30, rest = 24 → 30*0.7 + 24*0.3
        assert weighted_mean([30, 30, 30, 24, 24]) == pytest.approx(28.2)

    def test_three_tier_weighting(self) -> None:
        # recent3 = 30, next3 = 27, rest = 24 → 15 + 8.1 + 4.8
        samples = [30, 30, 30, 27, 27, 27, 24]
        assert weighted_mean(samples) == pytest.approx(27.9)

    def test_recent_samples_dominate(self) -> None:
        samples = [24, 24, 24, 32, 32, 32, 32]
        assert weighted_mean(samples) < mean(samples)

    def test_empty_samples(self) -> None:
        assert weighted_mean([]) == 0.0


class TestPopulationStd:
    def test_equal_samples_have_zero_spread(self) -> None:
        assert population_std([28, 28, 28, 28]) == 0.0

    def test_spread_is_positive_when_samples_differ(self) -> None:
        assert population_std([28, 29]) > 0.0

    def test_uses_population_formula(self) -> None:
        # deviations ±1 around 28 → sqrt(2/2) = 1.0 (sample formula would be 1.41)
        assert population_std([27, 29]) == pytest.approx(1.0)

    def test_empty_samples(self) -> None:
        assert population_std([]) == 0.0


class TestRegularity:
    @pytest.mark.parametrize(
        ("std_dev", "expected"),
        [
            (0.0, Regularity.very_regular),
            (1.99, Regularity.very_regular),
            (2.0, Regularity.regular),
            (3.99, Regularity.regular),
            (4.0, Regularity.somewhat_irregular),
            (6.99, Regularity.somewhat_irregular),
            (7.0, Regularity.irregular),
            (12.5, Regularity.irregular),
        ],
    )
    def test_thresholds(
        self, std_dev: float, expected: Regularity, forecast_config: ForecastConfig
    ) -> None:
        assert classify_regularity(std_dev, forecast_config) is expected


class TestAveragePeriodLength:
    def test_mean_of_plausible_durations(self, forecast_config: ForecastConfig) -> None:
        start = date(2026, 9, 1)
        records = [
            CycleRecord(period_start=start, period_end=start + timedelta(days=3)),  # 4
            CycleRecord(period_start=start - timedelta(days=28),
                        period_end=start - timedelta(days=23)),  # 6
        ]
        assert average_period_length(records, forecast_config) == pytest.approx(5.0)

    def test_implausible_durations_ignored(self, forecast_config: ForecastConfig) -> None:
        start = date(2026, 9, 1)
        records = [
            CycleRecord(period_start=start, period_end=start),  # 1 day
            CycleRecord(period_start=start - timedelta(days=28),
                        period_end=start - timedelta(days=14)),  # 15 days
            CycleRecord(period_start=start - timedelta(days=56),
                        period_end=start - timedelta(days=50)),  # 7 days
        ]
        assert average_period_length(records, forecast_config) == pytest.approx(7.0)

    def test_falls_back_to_default(self, forecast_config: ForecastConfig) -> None:
        records = records_from_intervals([28, 28], period_days=None)
        assert average_period_length(records, forecast_config) == 5.0


class TestComputeCycleStats:
    def test_scenario_a(self, forecast_config: ForecastConfig) -> None:
        stats = compute_cycle_stats(records_from_intervals(SCENARIO_A_INTERVALS), forecast_config)
        assert stats.sample_count == 10
        assert stats.mean_cycle_length == pytest.approx(24.9)
        assert stats.weighted_cycle_length == pytest.approx(24.49, abs=0.01)
        assert stats.std_dev == pytest.approx(3.86, abs=0.01)
        assert stats.regularity is Regularity.regular

    def test_scenario_b(self, forecast_config: ForecastConfig) -> None:
        stats = compute_cycle_stats(records_from_intervals(SCENARIO_B_INTERVALS), forecast_config)
        assert stats.sample_count == 8
        assert stats.mean_cycle_length == pytest.approx(27.75)
        # recent3 27.33*0.5 + next3 27.67*0.3 + rest 28.5*0.2
        assert stats.weighted_cycle_length == pytest.approx(27.667, abs=0.001)
        assert stats.std_dev == pytest.approx(0.968, abs=0.001)
        assert stats.regularity is Regularity.very_regular
        assert stats.avg_period_length == pytest.approx(5.0)

    def test_sample_count_excludes_dropped_intervals(
        self, forecast_config: ForecastConfig
    ) -> None:
        records = records_from_intervals([28, 60, 27, 15, 29])
        stats = compute_cycle_stats(records, forecast_config)
        assert len(records) == 6
        assert stats.sample_count == 3

    def test_deterministic(self, forecast_config: ForecastConfig) -> None:
        records = records_from_intervals(SCENARIO_A_INTERVALS)
        assert compute_cycle_stats(records, forecast_config) == compute_cycle_stats(
            records, forecast_config
        )
