"""Load, validate, and hot-reload the CycleCast forecast policy.

The policy lives in ``forecast_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_forecast_config()`` to re-read
from disk after an edit, no restart required.

Usage::

    from cyclecast.forecast.config_loader import get_forecast_config

    config = get_forecast_config()
    config.bounds.min_cycle_days                         # 21
    config.confidence.base_for(Regularity.regular)       # 0.82
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cyclecast.forecast.types import Regularity

logger = logging.getLogger("cyclecast.forecast.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "forecast_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class HistoryConfig:
    """How much history a forecast reads."""

    max_records: int = 12
    min_records_for_stats: int = 3


@dataclass
class BoundsConfig:
    """Biological plausibility bounds for samples (inclusive, in days)."""

    min_cycle_days: int = 21
    max_cycle_days: int = 45
    min_period_days: int = 2
    max_period_days: int = 10

    def is_plausible_cycle(self, days: int) -> bool:
        return self.min_cycle_days <= days <= self.max_cycle_days

    def is_plausible_period(self, days: int) -> bool:
        return self.min_period_days <= days <= self.max_period_days


@dataclass
class DefaultsConfig:
    """Fallback lengths for the cold-start forecast."""

    cycle_length_days: int = 28
    period_length_days: int = 5


@dataclass
class RegularityConfig:
    """Standard deviation thresholds; each is an exclusive upper bound."""

    very_regular_below: float = 2.0
    regular_below: float = 4.0
    somewhat_irregular_below: float = 7.0


@dataclass
class ConfidenceConfig:
    """Confidence scoring constants."""

    base: dict[Regularity, float] = field(default_factory=dict)
    data_boost_max: float = 0.08
    full_data_samples: int = 12
    typical_cycle_min_days: float = 26
    typical_cycle_max_days: float = 32
    atypical_penalty: float = 0.05
    min: float = 0.40
    max: float = 0.95
    cold_start_base: float = 0.40
    cold_start_per_record: float = 0.10
    decay_per_cycle: float = 0.95

    def base_for(self, regularity: Regularity) -> float:
        return self.base[regularity]


@dataclass
class FertileWindowConfig:
    """Offsets used to place ovulation and the fertile window."""

    luteal_phase_days: int = 14
    days_before_ovulation: int = 5
    days_after_ovulation: int = 1


@dataclass
class FlowConfig:
    """Flow intensity voting window."""

    max_records: int = 6
    recent_records: int = 3
    recent_bonus: float = 0.5


@dataclass
class ProjectionConfig:
    """Multi-cycle projection limits."""

    default_cycles: int = 3
    max_cycles: int = 6


@dataclass
class ForecastConfig:
    """Complete, validated forecast policy.

    This is the single in-memory representation of forecast_config.yaml.
    Every filter, calculator, and scorer reads its constants from here.
    """

    version: str
    history: HistoryConfig
    bounds: BoundsConfig
    defaults: DefaultsConfig
    regularity: RegularityConfig
    confidence: ConfidenceConfig
    fertile_window: FertileWindowConfig
    flow: FlowConfig
    projection: ProjectionConfig
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when forecast_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    import yaml  # pyyaml

    if not path.exists():
        raise FileNotFoundError(f"Forecast config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> ForecastConfig:
    """Validate the raw YAML dict and construct a ForecastConfig.

    Missing sections fall back to the dataclass defaults.  All problems are
    collected and reported together.

    Raises:
        ConfigValidationError: If any value is malformed or out of range.
    """
    errors: list[str] = []

    def _number(section: dict, key: str, path: str, default: Any, cast: type = float) -> Any:
        value = section.get(key, default)
        try:
            return cast(value)
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must be a number, got {value!r}")
            return default

    version = str(raw.get("version", "1.0"))

    # ── History ──
    h_raw = raw.get("history") or {}
    history = HistoryConfig(
        max_records=_number(h_raw, "max_records", "history", 12, int),
        min_records_for_stats=_number(h_raw, "min_records_for_stats", "history", 3, int),
    )
    if history.max_records < 2:
        errors.append("history.max_records must be at least 2")
    if history.min_records_for_stats < 2:
        errors.append("history.min_records_for_stats must be at least 2")

    # ── Bounds ──
    b_raw = raw.get("bounds") or {}
    bounds = BoundsConfig(
        min_cycle_days=_number(b_raw, "min_cycle_days", "bounds", 21, int),
        max_cycle_days=_number(b_raw, "max_cycle_days", "bounds", 45, int),
        min_period_days=_number(b_raw, "min_period_days", "bounds", 2, int),
        max_period_days=_number(b_raw, "max_period_days", "bounds", 10, int),
    )
    if bounds.min_cycle_days > bounds.max_cycle_days:
        errors.append("bounds.min_cycle_days must not exceed bounds.max_cycle_days")
    if bounds.min_period_days > bounds.max_period_days:
        errors.append("bounds.min_period_days must not exceed bounds.max_period_days")

    # ── Defaults ──
    d_raw = raw.get("defaults") or {}
    defaults = DefaultsConfig(
        cycle_length_days=_number(d_raw, "cycle_length_days", "defaults", 28, int),
        period_length_days=_number(d_raw, "period_length_days", "defaults", 5, int),
    )
    if defaults.period_length_days < 1:
        errors.append("defaults.period_length_days must be at least 1")

    # ── Regularity ──
    r_raw = raw.get("regularity") or {}
    regularity = RegularityConfig(
        very_regular_below=_number(r_raw, "very_regular_below", "regularity", 2.0),
        regular_below=_number(r_raw, "regular_below", "regularity", 4.0),
        somewhat_irregular_below=_number(r_raw, "somewhat_irregular_below", "regularity", 7.0),
    )
    if not (
        regularity.very_regular_below
        <= regularity.regular_below
        <= regularity.somewhat_irregular_below
    ):
        errors.append("regularity thresholds must be in ascending order")

    # ── Confidence ──
    c_raw = raw.get("confidence") or {}
    base_raw = c_raw.get("base") or {}
    base_defaults = {
        Regularity.very_regular: 0.92,
        Regularity.regular: 0.82,
        Regularity.somewhat_irregular: 0.67,
        Regularity.irregular: 0.50,
    }
    base: dict[Regularity, float] = {}
    for tag, default in base_defaults.items():
        base[tag] = _number(base_raw, tag.value, "confidence.base", default)
    unknown = set(base_raw) - {t.value for t in Regularity}
    for key in sorted(unknown):
        errors.append(f"confidence.base.{key} is not a known regularity tag")

    confidence = ConfidenceConfig(
        base=base,
        data_boost_max=_number(c_raw, "data_boost_max", "confidence", 0.08),
        full_data_samples=_number(c_raw, "full_data_samples", "confidence", 12, int),
        typical_cycle_min_days=_number(c_raw, "typical_cycle_min_days", "confidence", 26),
        typical_cycle_max_days=_number(c_raw, "typical_cycle_max_days", "confidence", 32),
        atypical_penalty=_number(c_raw, "atypical_penalty", "confidence", 0.05),
        min=_number(c_raw, "min", "confidence", 0.40),
        max=_number(c_raw, "max", "confidence", 0.95),
        cold_start_base=_number(c_raw, "cold_start_base", "confidence", 0.40),
        cold_start_per_record=_number(c_raw, "cold_start_per_record", "confidence", 0.10),
        decay_per_cycle=_number(c_raw, "decay_per_cycle", "confidence", 0.95),
    )
    if not (0.0 <= confidence.min <= confidence.max <= 1.0):
        errors.append(
            f"confidence bounds [{confidence.min}, {confidence.max}] must lie within [0.0, 1.0]"
        )
    if confidence.full_data_samples < 1:
        errors.append("confidence.full_data_samples must be at least 1")
    if not (0.0 < confidence.decay_per_cycle <= 1.0):
        errors.append("confidence.decay_per_cycle must be in (0.0, 1.0]")

    # ── Fertile window ──
    fw_raw = raw.get("fertile_window") or {}
    fertile_window = FertileWindowConfig(
        luteal_phase_days=_number(fw_raw, "luteal_phase_days", "fertile_window", 14, int),
        days_before_ovulation=_number(fw_raw, "days_before_ovulation", "fertile_window", 5, int),
        days_after_ovulation=_number(fw_raw, "days_after_ovulation", "fertile_window", 1, int),
    )

    # ── Flow ──
    f_raw = raw.get("flow") or {}
    flow = FlowConfig(
        max_records=_number(f_raw, "max_records", "flow", 6, int),
        recent_records=_number(f_raw, "recent_records", "flow", 3, int),
        recent_bonus=_number(f_raw, "recent_bonus", "flow", 0.5),
    )
    if flow.recent_records > flow.max_records:
        errors.append("flow.recent_records must not exceed flow.max_records")

    # ── Projection ──
    p_raw = raw.get("projection") or {}
    projection = ProjectionConfig(
        default_cycles=_number(p_raw, "default_cycles", "projection", 3, int),
        max_cycles=_number(p_raw, "max_cycles", "projection", 6, int),
    )
    if not (1 <= projection.default_cycles <= projection.max_cycles):
        errors.append("projection.default_cycles must be between 1 and projection.max_cycles")

    if errors:
        raise ConfigValidationError(
            f"forecast_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return ForecastConfig(
        version=version,
        history=history,
        bounds=bounds,
        defaults=defaults,
        regularity=regularity,
        confidence=confidence,
        fertile_window=fertile_window,
        flow=flow,
        projection=projection,
        _raw=raw,
    )


def load_forecast_config(path: Path | None = None) -> ForecastConfig:
    """Load and validate the forecast config from disk.

    Args:
        path: Override path to YAML. Uses the bundled forecast_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded forecast config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: ForecastConfig | None = None
_config_lock = threading.Lock()


def get_forecast_config() -> ForecastConfig:
    """Return the global ForecastConfig singleton, loading it on first call."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_forecast_config()
    return _config


def reload_forecast_config(path: Path | None = None) -> ForecastConfig:
    """Reload the forecast config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_forecast_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded forecast config: %s → %s", old_version, new_config.version)
    return new_config
