"""
QoE Score Calculator

Implements an ETSI TR 103 559 style weighted scoring of network
Quality of Experience. Every category is reduced to a unit score in
[0, 1] by its extractor, then composed into the Data domain and the
Overall score:

    Voice ─────────────────────────────┐
    HTTP ──────┐                       ├── Overall (voice 0.4 / data 0.6)
    Browsing ──┤                       │
    Streaming ─┼── Data (0.25/0.38/ ───┘
    Social ────┘        0.22/0.15)

Missing data never scores as zero: a metric or category without
samples is left out and the remaining weights are renormalised. The
applied weight reported at every node tells how much of the configured
weight was actually backed by samples.

References:
    ETSI TR 103 559: Best practices for robust network QoS benchmark testing and scoring
    ITU-T P.800: Mean Opinion Score (MOS) terminology
"""

import logging
from typing import Dict, Optional

from ..config import Config, get_config
from ..samples import MetricsSnapshot
from ..scores import DATA_CATEGORIES, CategoryScore, ScoreNode, ScoreTree
from ..utils.stats import weighted_score
from .base_extractor import BaseExtractor
from .browsing import BrowsingExtractor
from .http import HttpExtractor
from .social import SocialExtractor
from .streaming import StreamingExtractor
from .voice import VoiceExtractor

logger = logging.getLogger(__name__)


def normalize_score(
    score: Optional[float], applied_weight: float, expected_weight: float
) -> Optional[float]:
    """
    Scale a category score by its internal coverage.

    A category where only part of its metric weight had samples
    contributes proportionally less to the Data domain.

    Args:
        score: Category score (None propagates)
        applied_weight: Sum of the weights of the category's scored metrics
        expected_weight: Configured total weight of the category

    Returns:
        score * applied_weight / expected_weight, the unchanged score when
        fully covered, or None when nothing was scored
    """
    if score is None or applied_weight == 0:
        return None
    if applied_weight == expected_weight:
        return score
    return score * (applied_weight / expected_weight)


class QoEScoreCalculator:
    """
    Multi-level QoE score calculator.

    The calculator holds no state besides its configuration: calculate()
    is a pure function of the snapshot and can be called concurrently.

    Example:
        calculator = QoEScoreCalculator()
        tree = calculator.calculate(snapshot)
        print(f"Overall QoE: {format_score(tree.overall.score)}")
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        """
        Initialize the calculator.

        Args:
            config: Scoring configuration (default: bundled profile)
        """
        self.config = config or get_config()
        self.extractors: Dict[str, BaseExtractor] = {
            "voice": VoiceExtractor(self.config),
            "http": HttpExtractor(self.config),
            "browsing": BrowsingExtractor(self.config),
            "streaming": StreamingExtractor(self.config),
            "social": SocialExtractor(self.config),
        }

    def calculate(self, metrics: Optional[MetricsSnapshot] = None) -> ScoreTree:
        """
        Calculate the complete score tree.

        Args:
            metrics: Sample accumulator snapshot (None = empty snapshot)

        Returns:
            ScoreTree with the five category scores, the Data domain score
            and the Overall score

        Algorithm:
            1. Score each category with its extractor
            2. Renormalise each data category by its internal coverage
            3. Weighted mean of the data categories -> Data
            4. Weighted mean of Voice and Data -> Overall
        """
        if metrics is None:
            metrics = MetricsSnapshot()

        self._log_inputs(metrics)

        categories = {name: extractor.score(metrics) for name, extractor in self.extractors.items()}

        data = self._calculate_data_score(categories)
        overall = self._calculate_overall_score(categories["voice"], data)

        logger.debug(
            f"[QoE] voice={categories['voice'].score} data={data.score} "
            f"overall={overall.score} overall_applied_weight={overall.applied_weight}"
        )

        return ScoreTree(
            voice=categories["voice"],
            http=categories["http"],
            browsing=categories["browsing"],
            streaming=categories["streaming"],
            social=categories["social"],
            data=data,
            overall=overall,
        )

    def _calculate_data_score(self, categories: Dict[str, CategoryScore]) -> ScoreNode:
        """
        Combine the data categories into the Data domain score.

        Each category score is first renormalised by its own coverage,
        then the renormalised scores are weighted by the category weights.
        """
        data_weights = self.config.data_weights
        entries = []
        for name in DATA_CATEGORIES:
            category = categories[name]
            expected_weight = data_weights[name]
            normalized = normalize_score(category.score, category.applied_weight, expected_weight)
            if normalized is not None:
                entries.append((normalized, expected_weight))

        return weighted_score(entries)

    def _calculate_overall_score(self, voice: CategoryScore, data: ScoreNode) -> ScoreNode:
        """
        Combine Voice and Data into the Overall score.

        Unlike the Data tier, Voice and Data are NOT renormalised by their
        coverage here; absent branches are only dropped.
        """
        overall_weights = self.config.overall_weights
        entries = [
            (node.score, overall_weights[name])
            for name, node in (("voice", voice), ("data", data))
            if node.score is not None
        ]
        return weighted_score(entries)

    def _log_inputs(self, metrics: MetricsSnapshot) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        voice = metrics.voice
        data = metrics.data
        logger.debug(
            f"[QoE] voice input: attempts={voice.attempts} setup_ok={voice.setup_ok} "
            f"completed={voice.completed} dropped={voice.dropped} "
            f"setup_times={len(voice.setup_times)} mos_samples={len(voice.mos_samples)}"
        )
        logger.debug(
            f"[QoE] data input: "
            f"http.dl={data.http.dl.completed}/{data.http.dl.requests} "
            f"http.ul={data.http.ul.completed}/{data.http.ul.requests} "
            f"browsing={data.browsing.completed}/{data.browsing.requests} "
            f"streaming={data.streaming.completed}/{data.streaming.requests} "
            f"social={data.social.completed}/{data.social.requests}"
        )


def calculate_scores(metrics: Optional[MetricsSnapshot] = None, config: Optional[Config] = None) -> ScoreTree:
    """
    Score a snapshot with a one-off calculator.

    Args:
        metrics: Sample accumulator snapshot
        config: Scoring configuration (default: bundled profile)

    Returns:
        ScoreTree
    """
    return QoEScoreCalculator(config).calculate(metrics)
