"""
Statistical utilities for reducing raw QoE samples to metric values.

This module provides the numeric primitives shared by every metric
extractor: null-safe averages, percentiles and ratios, the linear
threshold-to-score mapping and the weighted mean used at every level
of the score tree.

Insufficient data (empty series, zero denominator) is always reported
as None, never as 0 and never as an exception.
"""

from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from ..scores import ScoreNode


def safe_average(values: Sequence[float]) -> Optional[float]:
    """
    Arithmetic mean of the values, or None when there are none.

    Args:
        values: Numeric samples

    Returns:
        Mean as a float, None for an empty sequence
    """
    if not values:
        return None
    return float(np.mean(np.asarray(values, dtype=float)))


def percentile(values: Sequence[float], p: float) -> Optional[float]:
    """
    Linearly interpolated percentile.

    The samples are sorted ascending and the fractional index
    ``(n - 1) * p`` is interpolated between its floor and ceiling
    elements (numpy's "linear" method).

    Args:
        values: Numeric samples
        p: Percentile as a fraction in [0, 1]

    Returns:
        Interpolated value, None for an empty sequence

    Examples:
        >>> percentile([10, 20, 30, 100], 0.1)
        13.0
        >>> percentile([], 0.5) is None
        True
    """
    if not values:
        return None
    arr = np.asarray(values, dtype=float)
    return float(np.quantile(arr, p))


def ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """
    Null-safe division. Not clamped to [0, 1].

    Returns:
        numerator / denominator, or None if the denominator is 0 or None
    """
    if not denominator:
        return None
    if numerator is None:
        return None
    return numerator / denominator


def count_above(values: Iterable[float], limit: float) -> int:
    """Number of samples strictly greater than limit."""
    return sum(1 for value in values if value > limit)


def count_below(values: Iterable[float], limit: float) -> int:
    """Number of samples strictly lower than limit."""
    return sum(1 for value in values if value < limit)


def score_linear(
    value: Optional[float], good: float, bad: float, higher_is_better: bool = True
) -> Optional[float]:
    """
    Map a metric value to a unit score with a linear good/bad ramp.

    ``good`` is always the anchor where the score saturates to 1 and
    ``bad`` the anchor where it saturates to 0; ``higher_is_better``
    tells which side of the ramp is which.

    Args:
        value: Metric value (None propagates)
        good: Value scoring exactly 1
        bad: Value scoring exactly 0
        higher_is_better: Direction of the metric

    Returns:
        Score in [0, 1], or None when value is None
    """
    if value is None:
        return None

    if higher_is_better:
        if value >= good:
            return 1.0
        if value <= bad:
            return 0.0
        return (value - bad) / (good - bad)

    if value <= good:
        return 1.0
    if value >= bad:
        return 0.0
    return (bad - value) / (bad - good)


def weighted_score(entries: Iterable[Tuple[float, float]]) -> ScoreNode:
    """
    Weighted mean of (score, weight) pairs.

    Scores must already be non-null: callers drop unavailable metrics
    before calling. The returned applied weight is the sum of the
    weights that actually contributed.

    Args:
        entries: Iterable of (score, weight) pairs

    Returns:
        ScoreNode(score, applied_weight); ScoreNode(None, 0.0) when the
        total weight is zero
    """
    total_weight = 0.0
    score_sum = 0.0
    for score, weight in entries:
        total_weight += weight
        score_sum += score * weight

    if not total_weight:
        return ScoreNode(score=None, applied_weight=0.0)

    return ScoreNode(score=score_sum / total_weight, applied_weight=total_weight)


def calculate_stats(values: Sequence[float]) -> Dict[str, float]:
    """
    Calculate descriptive statistics for a raw sample series.

    Args:
        values: List of numeric values to analyze

    Returns:
        dict: count, min, max, mean, p10, p50 and p90. Empty dict if
        values is empty.

    Examples:
        >>> calculate_stats([1.0, 2.0, 3.0, 4.0, 5.0])["p50"]
        3.0
        >>> calculate_stats([])
        {}
    """
    if not values:
        return {}

    arr = np.asarray(values, dtype=float)

    return {
        "count": int(arr.size),
        "min": float(np.min(arr)),
        "max": float(np.max(arr)),
        "mean": float(np.mean(arr)),
        "p10": float(np.quantile(arr, 0.1)),
        "p50": float(np.quantile(arr, 0.5)),
        "p90": float(np.quantile(arr, 0.9)),
    }
