"""Aggregate logged symptoms into per-type patterns across periods.

For each symptom type the pattern reports how often it occurs (percent of the
user's logged periods), its mean severity to one decimal, and how many times
it was logged.  Patterns are ordered most frequent first; ties keep the order
in which types were first seen.

Usage::

    patterns = summarize_symptom_patterns(entries, total_periods=8)
    payload = symptom_patterns_payload(patterns, total_periods=8)
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from cyclecast.forecast.types import SymptomEntry, SymptomType


@dataclass(frozen=True)
class SymptomPattern:
    """Aggregated statistics for one symptom type.

    Attributes:
        symptom_type: The symptom.
        frequency:    Occurrences as a whole percent of logged periods.
        avg_severity: Mean severity, one decimal.
        occurrences:  Number of times the symptom was logged.
    """

    symptom_type: SymptomType
    frequency: int
    avg_severity: float
    occurrences: int


def _percent(part: int, whole: int) -> int:
    return int(math.floor(part * 100 / whole + 0.5))


def _one_decimal(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def summarize_symptom_patterns(
    entries: Iterable[SymptomEntry], total_periods: int
) -> list[SymptomPattern]:
    """Group symptom entries by type and rank them by frequency.

    Args:
        entries:       Logged symptoms, periods newest first.
        total_periods: Number of periods the user has logged.

    Returns:
        One pattern per symptom type seen, most frequent first.  Empty when
        the user has no periods.
    """
    if total_periods <= 0:
        return []

    severities: dict[SymptomType, list[int]] = {}
    for entry in entries:
        severities.setdefault(entry.symptom_type, []).append(entry.severity)

    patterns = [
        SymptomPattern(
            symptom_type=symptom_type,
            frequency=_percent(len(values), total_periods),
            avg_severity=_one_decimal(statistics.fmean(values)),
            occurrences=len(values),
        )
        for symptom_type, values in severities.items()
    ]
    patterns.sort(key=lambda p: p.frequency, reverse=True)
    return patterns


def symptom_patterns_payload(
    patterns: Sequence[SymptomPattern], total_periods: int
) -> dict[str, Any]:
    return {
        "patterns": [
            {
                "symptom_type": p.symptom_type.value,
                "frequency": p.frequency,
                "avg_severity": p.avg_severity,
                "occurrences": p.occurrences,
            }
            for p in patterns
        ],
        "total_periods": total_periods,
    }
