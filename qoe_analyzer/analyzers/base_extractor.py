"""
Base extractor class providing interface consistency for all QoE categories.

All category extractors inherit from BaseExtractor so that every
category goes through the same scoring pipeline.

The extractor lifecycle:
1. __init__(): Bind the category specification (weights and thresholds)
2. extract(): Reduce the raw sample snapshot to named scalars
3. scoring_inputs(): Select the scalars fed to the threshold table
4. score(): Map, filter, and weight the scalars into a CategoryScore
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..config import CategorySpec, Config, get_config
from ..samples import MetricsSnapshot
from ..scores import CategoryScore
from ..utils.stats import score_linear, weighted_score

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """
    Abstract base class for all QoE metric extractors.

    Extractors are stateless: they never mutate the snapshot and can be
    called concurrently. Missing data is reported as None and never
    raises.
    """

    category: str = ""

    def __init__(self, config: Optional[Config] = None) -> None:
        """
        Initialize the extractor.

        Args:
            config: Scoring configuration (default: bundled profile)
        """
        self.config = config or get_config()
        self.spec: CategorySpec = self.config.category(self.category)

    @abstractmethod
    def extract(self, metrics: MetricsSnapshot) -> Dict[str, Optional[float]]:
        """
        Reduce the snapshot to the category's raw derived scalars.

        Args:
            metrics: Sample accumulator snapshot

        Returns:
            Mapping metric name -> value, None meaning insufficient data
        """
        pass

    def scoring_inputs(self, raw: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
        """
        Values fed to the threshold table, keyed by configured metric name.

        Default implementation scores each configured metric from the
        raw scalar of the same name.
        """
        return {metric.name: raw.get(metric.name) for metric in self.spec.metrics}

    def score(self, metrics: MetricsSnapshot) -> CategoryScore:
        """
        Score the category.

        Args:
            metrics: Sample accumulator snapshot

        Returns:
            CategoryScore with the weighted score, the applied weight,
            the raw scalars and the unit score of each metric
        """
        raw = self.extract(metrics)
        inputs = self.scoring_inputs(raw)

        metric_scores: Dict[str, Optional[float]] = {}
        entries = []
        for metric in self.spec.metrics:
            threshold = metric.threshold
            unit_score = score_linear(
                inputs.get(metric.name), threshold.good, threshold.bad, threshold.higher_is_better
            )
            metric_scores[metric.name] = unit_score
            if unit_score is not None:
                entries.append((unit_score, metric.weight))

        node = weighted_score(entries)

        logger.debug(f"[{self.category}] scalars={raw} unit_scores={metric_scores}")
        logger.debug(
            f"[{self.category}] score={node.score} applied_weight={node.applied_weight} "
            f"({len(entries)}/{len(self.spec.metrics)} metrics)"
        )

        return CategoryScore(
            score=node.score,
            applied_weight=node.applied_weight,
            metrics=raw,
            metric_scores=metric_scores,
        )
