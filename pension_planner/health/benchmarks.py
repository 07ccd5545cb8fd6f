"""Map a raw ratio onto a 0-100 score using benchmark tiers.

A benchmark table has four thresholds, ``poor``, ``fair``, ``good`` and
``excellent``, which split the range into five tiers.  Scores interpolate
linearly inside a tier:

=========  ===========
tier       score range
=========  ===========
critical   0 - 25
poor       25 - 50
fair       50 - 75
good       75 - 100
excellent  100
=========  ===========

Example
-------

>>> score_higher_is_better(6, {"poor": 1, "fair": 3, "good": 6, "excellent": 12})
(75.0, 'good')
>>> score_lower_is_better(0.05, {"excellent": 0.1, "good": 0.2, "fair": 0.3, "poor": 0.5})
(100.0, 'excellent')
"""

from __future__ import annotations

from typing import Mapping, Tuple


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _interp(value: float, lo: float, hi: float) -> float:
    """Fraction of the way ``value`` is from ``lo`` to ``hi``."""
    if hi == lo:
        return 1.0
    return (value - lo) / (hi - lo)


def score_higher_is_better(value: float, benchmarks: Mapping[str, float]) -> Tuple[float, str]:
    """Score a metric where larger values are healthier (savings rate, coverage)."""
    poor = float(benchmarks["poor"])
    fair = float(benchmarks["fair"])
    good = float(benchmarks["good"])
    excellent = float(benchmarks["excellent"])

    if value >= excellent:
        return 100.0, "excellent"
    if value >= good:
        return 75.0 + _interp(value, good, excellent) * 25, "good"
    if value >= fair:
        return 50.0 + _interp(value, fair, good) * 25, "fair"
    if value >= poor:
        return 25.0 + _interp(value, poor, fair) * 25, "poor"
    if value > 0 and poor > 0:
        return value / poor * 25, "critical"
    return 0.0, "critical"


def score_lower_is_better(value: float, benchmarks: Mapping[str, float]) -> Tuple[float, str]:
    """Score a metric where smaller values are healthier (debt-to-income).

    Past the ``poor`` threshold the score drops by 50 points per unit of
    ratio until it reaches 0.
    """
    excellent = float(benchmarks["excellent"])
    good = float(benchmarks["good"])
    fair = float(benchmarks["fair"])
    poor = float(benchmarks["poor"])

    if value <= excellent:
        return 100.0, "excellent"
    if value <= good:
        return 100.0 - _interp(value, excellent, good) * 25, "good"
    if value <= fair:
        return 75.0 - _interp(value, good, fair) * 25, "fair"
    if value <= poor:
        return 50.0 - _interp(value, fair, poor) * 25, "poor"
    return max(0.0, 25.0 - (value - poor) * 50), "critical"


__all__ = ["clamp", "score_higher_is_better", "score_lower_is_better"]
