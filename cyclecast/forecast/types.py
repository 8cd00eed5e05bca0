"""Value types shared by the forecast modules.

Every type here is a frozen dataclass or a string enum.  Records are read-only
snapshots of the history store; stats and results are built fresh for each
forecast and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class FlowIntensity(str, Enum):
    light = "light"
    moderate = "moderate"
    heavy = "heavy"


class Regularity(str, Enum):
    very_regular = "very_regular"
    regular = "regular"
    somewhat_irregular = "somewhat_irregular"
    irregular = "irregular"


class SymptomType(str, Enum):
    cramps = "cramps"
    headache = "headache"
    mood_swings = "mood_swings"
    fatigue = "fatigue"
    bloating = "bloating"
    acne = "acne"
    other = "other"


@dataclass(frozen=True)
class CycleRecord:
    """A single logged period.

    Attributes:
        period_start:   First day of menstruation.
        period_end:     Last day of menstruation (optional).
        flow_intensity: Logged flow category, if any.
    """

    period_start: date
    period_end: date | None = None
    flow_intensity: FlowIntensity | None = None

    @property
    def duration_days(self) -> int | None:
        """Inclusive period length in days, or None without an end date."""
        if self.period_end is None:
            return None
        return (self.period_end - self.period_start).days + 1


@dataclass(frozen=True)
class CycleStats:
    """Summary statistics of the user's recent cycle intervals.

    Attributes:
        mean_cycle_length:     Arithmetic mean of the valid intervals.
        weighted_cycle_length: Recency-tiered mean of the valid intervals.
        std_dev:               Population standard deviation around the mean.
        regularity:            Classification derived from ``std_dev``.
        avg_period_length:     Mean plausible period duration in days.
        sample_count:          Number of intervals that passed the filter.
    """

    mean_cycle_length: float
    weighted_cycle_length: float
    std_dev: float
    regularity: Regularity
    avg_period_length: float
    sample_count: int


@dataclass(frozen=True)
class PredictionResult:
    """Forecast for one upcoming cycle.

    Attributes:
        predicted_start:      Predicted first day of the next period.
        predicted_end:        Predicted last day of the next period.
        ovulation_date:       Estimated ovulation day.
        fertile_window_start: First day of the fertile window.
        fertile_window_end:   Last day of the fertile window.
        confidence:           0.40–0.95 on the statistical path.
        flow_intensity:       Predicted flow, or None when no flow was logged.
        stats:                The statistics the forecast was derived from.
        is_default:           True when built from fallback lengths.
    """

    predicted_start: date
    predicted_end: date
    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    confidence: float
    flow_intensity: FlowIntensity | None
    stats: CycleStats
    is_default: bool = False


@dataclass(frozen=True)
class CycleForecast:
    """One entry of a multi-cycle projection (``cycle_number`` is 1-based)."""

    cycle_number: int
    prediction: PredictionResult


@dataclass(frozen=True)
class SymptomEntry:
    """A logged symptom of one period (severity 1-5)."""

    symptom_type: SymptomType
    severity: int
