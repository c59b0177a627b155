"""
Score tree data model.

A ScoreNode is the output of aggregation at any level of the tree:
the weighted score (None when no metric contributed) and the applied
weight, i.e. the sum of the weights actually backed by samples.

Nulls are meaningful here: ``to_dict`` always writes every key, with
None where data is missing, so a JSON round-trip reproduces the same
structure.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

CATEGORIES = ("voice", "http", "browsing", "streaming", "social")
DATA_CATEGORIES = ("http", "browsing", "streaming", "social")

# Qualitative bands for display (lower bound of each band)
SCORE_BAND_EXCELLENT = 0.90
SCORE_BAND_GOOD = 0.75
SCORE_BAND_FAIR = 0.50
SCORE_BAND_POOR = 0.25

PLACEHOLDER = "--"


@dataclass(frozen=True)
class ScoreNode:
    """
    Aggregated score at one level of the tree.

    Attributes:
        score: Weighted score in [0, 1], None iff applied_weight is 0
        applied_weight: Sum of the weights of contributing metrics
    """

    score: Optional[float]
    applied_weight: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "applied_weight": self.applied_weight}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ScoreNode":
        data = data or {}
        return cls(score=data.get("score"), applied_weight=data.get("applied_weight") or 0.0)


@dataclass(frozen=True)
class CategoryScore(ScoreNode):
    """
    Leaf category score with the raw scalars it was computed from.

    Attributes:
        metrics: Raw derived scalars (None = insufficient data)
        metric_scores: Unit score of each scored metric (None = not scored)
    """

    metrics: Dict[str, Optional[float]] = field(default_factory=dict)
    metric_scores: Dict[str, Optional[float]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(self.metrics)
        data["metric_scores"] = dict(self.metric_scores)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CategoryScore":
        data = dict(data or {})
        score = data.pop("score", None)
        applied_weight = data.pop("applied_weight", None) or 0.0
        metric_scores = data.pop("metric_scores", None) or {}
        return cls(
            score=score,
            applied_weight=applied_weight,
            metrics=data,
            metric_scores=dict(metric_scores),
        )


@dataclass(frozen=True)
class ScoreTree:
    """Complete result of one scoring pass."""

    voice: CategoryScore
    http: CategoryScore
    browsing: CategoryScore
    streaming: CategoryScore
    social: CategoryScore
    data: ScoreNode
    overall: ScoreNode

    def categories(self) -> Dict[str, CategoryScore]:
        return {name: getattr(self, name) for name in CATEGORIES}

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {name: node.to_dict() for name, node in self.categories().items()}
        result["data"] = self.data.to_dict()
        result["overall"] = self.overall.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ScoreTree":
        data = data or {}
        return cls(
            **{name: CategoryScore.from_dict(data.get(name)) for name in CATEGORIES},
            data=ScoreNode.from_dict(data.get("data")),
            overall=ScoreNode.from_dict(data.get("overall")),
        )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_score(score: Optional[float]) -> str:
    """Render a unit score as a rounded percentage, or the placeholder."""
    if score is None:
        return PLACEHOLDER
    return f"{_round_half_up(score * 100)}%"


def format_coverage(applied_weight: Optional[float], total_weight: float = 1.0) -> str:
    """Render an applied weight as a coverage percentage of total_weight."""
    if applied_weight is None or not total_weight:
        return PLACEHOLDER
    return f"{_round_half_up(applied_weight / total_weight * 100)}%"


def rate_score(score: Optional[float]) -> str:
    """
    Qualitative band for a unit score.

    Returns:
        'excellent', 'good', 'fair', 'poor', 'bad', or 'unknown' for None
    """
    if score is None:
        return "unknown"
    if score >= SCORE_BAND_EXCELLENT:
        return "excellent"
    elif score >= SCORE_BAND_GOOD:
        return "good"
    elif score >= SCORE_BAND_FAIR:
        return "fair"
    elif score >= SCORE_BAND_POOR:
        return "poor"
    else:
        return "bad"
