"""
Shared utilities module for QoE metric extractors.
"""

from .stats import (
    calculate_stats,
    count_above,
    count_below,
    percentile,
    ratio,
    safe_average,
    score_linear,
    weighted_score,
)

__all__ = [
    # Null-safe statistics
    "safe_average",
    "percentile",
    "ratio",
    "count_above",
    "count_below",
    # Scoring
    "score_linear",
    "weighted_score",
    # Descriptive statistics
    "calculate_stats",
]
