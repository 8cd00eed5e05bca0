"""Tests for forecast_config.yaml loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from cyclecast.forecast import config_loader
from cyclecast.forecast.config_loader import (
    ConfigValidationError,
    _validate_and_build,
    get_forecast_config,
    load_forecast_config,
    reload_forecast_config,
)
from cyclecast.forecast.types import Regularity


class TestBundledConfig:
    def test_loads_reference_values(self) -> None:
        config = load_forecast_config()
        assert config.history.max_records == 12
        assert config.history.min_records_for_stats == 3
        assert (config.bounds.min_cycle_days, config.bounds.max_cycle_days) == (21, 45)
        assert (config.bounds.min_period_days, config.bounds.max_period_days) == (2, 10)
        assert config.defaults.cycle_length_days == 28
        assert config.confidence.base_for(Regularity.somewhat_irregular) == pytest.approx(0.67)
        assert config.confidence.decay_per_cycle == pytest.approx(0.95)
        assert config.projection.max_cycles == 6

    def test_empty_document_uses_defaults(self) -> None:
        config = _validate_and_build({})
        assert config.bounds.is_plausible_cycle(21)
        assert not config.bounds.is_plausible_cycle(46)
        assert config.confidence.base_for(Regularity.irregular) == pytest.approx(0.50)
        assert config.flow.recent_bonus == pytest.approx(0.5)


class TestValidation:
    def test_inverted_bounds_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="min_cycle_days"):
            _validate_and_build({"bounds": {"min_cycle_days": 40, "max_cycle_days": 30}})

    def test_unknown_regularity_tag_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="confidence.base.erratic"):
            _validate_and_build({"confidence": {"base": {"erratic": 0.3}}})

    def test_non_numeric_value_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="history.max_records must be a number"):
            _validate_and_build({"history": {"max_records": "twelve"}})

    def test_errors_reported_together(self) -> None:
        raw = {
            "confidence": {"min": 0.9, "max": 0.5},
            "projection": {"default_cycles": 8, "max_cycles": 6},
        }
        with pytest.raises(ConfigValidationError, match="2 validation error"):
            _validate_and_build(raw)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_forecast_config(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("bounds: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="YAML parse error"):
            load_forecast_config(path)


class TestReload:
    @pytest.fixture(autouse=True)
    def _isolate_singleton(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config_loader, "_config", None)

    def test_reload_replaces_singleton(self, tmp_path: Path) -> None:
        previous = get_forecast_config()
        path = tmp_path / "forecast_config.yaml"
        path.write_text('version: "2.0"\nprojection:\n  max_cycles: 4\n', encoding="utf-8")

        reloaded = reload_forecast_config(path)
        assert reloaded.version == "2.0"
        assert get_forecast_config() is reloaded
        assert get_forecast_config() is not previous
        assert reloaded.projection.max_cycles == 4

    def test_failed_reload_keeps_previous_config(self, tmp_path: Path) -> None:
        previous = get_forecast_config()
        path = tmp_path / "forecast_config.yaml"
        path.write_text("flow:\n  max_records: 2\n  recent_records: 3\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            reload_forecast_config(path)
        assert get_forecast_config() is previous
