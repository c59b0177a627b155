"""
Test suite for the multi-level QoE score calculator.

Checks the category -> Data -> Overall aggregation, the coverage
renormalisation of the Data tier and null propagation.
"""

import pytest

from qoe_analyzer.analyzers.qoe_score import QoEScoreCalculator, calculate_scores, normalize_score
from qoe_analyzer.samples import DataMetrics, MetricsSnapshot, StreamingMetrics
from qoe_analyzer.scores import CATEGORIES


class TestNormalizeScore:
    def test_full_coverage_unchanged(self):
        assert normalize_score(0.8, 0.22, 0.22) == 0.8

    def test_half_coverage_halves(self):
        assert normalize_score(0.8, 0.11, 0.22) == pytest.approx(0.4)

    def test_null_passthrough(self):
        assert normalize_score(None, 0.1, 0.22) is None
        assert normalize_score(0.8, 0, 0.22) is None


class TestQoEScoreCalculator:
    """Tests for the aggregation of the score tree."""

    @pytest.fixture
    def calculator(self, config):
        return QoEScoreCalculator(config)

    def test_empty_snapshot(self, calculator, empty_snapshot):
        """
        Given: a snapshot without any sample
        When: the score tree is calculated
        Then: every node is null with a zero applied weight
        """
        tree = calculator.calculate(empty_snapshot)

        for name in CATEGORIES:
            node = getattr(tree, name)
            assert node.score is None
            assert node.applied_weight == 0.0
        assert tree.data.score is None
        assert tree.overall.score is None
        assert tree.overall.applied_weight == 0.0

    def test_none_means_empty(self, calculator):
        assert calculator.calculate(None) == calculator.calculate(MetricsSnapshot())

    def test_data_tier_renormalisation(self, calculator):
        """
        Given: streaming requests only (success ratio 1.0, weight 0.1276 of 0.22)
        When: the score tree is calculated
        Then: streaming contributes 0.1276 / 0.22 = 0.58 to the Data score
        """
        snapshot = MetricsSnapshot(data=DataMetrics(streaming=StreamingMetrics(requests=4, completed=4)))

        tree = calculator.calculate(snapshot)

        assert tree.streaming.score == 1.0
        assert tree.data.score == pytest.approx(0.1276 / 0.22)
        assert tree.data.applied_weight == pytest.approx(0.22)

    def test_overall_is_not_renormalised(self, ms_config, perfect_voice):
        """
        Given: perfect voice, no data at all
        When: the score tree is calculated
        Then: Overall equals Voice and only the voice weight is applied
        """
        tree = QoEScoreCalculator(ms_config).calculate(MetricsSnapshot(voice=perfect_voice))

        assert tree.voice.score == pytest.approx(1.0)
        assert tree.data.score is None
        assert tree.overall.score == pytest.approx(1.0)
        assert tree.overall.applied_weight == pytest.approx(0.4)

    def test_overall_combines_voice_and_data(self, calculator):
        snapshot = MetricsSnapshot(data=DataMetrics(streaming=StreamingMetrics(requests=4, completed=4)))

        tree = calculator.calculate(snapshot)

        assert tree.overall.score == pytest.approx(tree.data.score)
        assert tree.overall.applied_weight == pytest.approx(0.6)

    def test_busy_snapshot_scores_in_range(self, calculator, busy_snapshot):
        tree = calculator.calculate(busy_snapshot)

        for name in CATEGORIES:
            assert 0.0 <= getattr(tree, name).score <= 1.0
        assert 0.0 <= tree.data.score <= 1.0
        assert 0.0 <= tree.overall.score <= 1.0
        assert tree.overall.applied_weight == pytest.approx(1.0)

    def test_calculate_does_not_mutate_snapshot(self, calculator, busy_snapshot):
        before = busy_snapshot.to_dict()

        calculator.calculate(busy_snapshot)

        assert busy_snapshot.to_dict() == before

    def test_functional_entry_point(self, config, busy_snapshot):
        assert calculate_scores(busy_snapshot, config) == QoEScoreCalculator(config).calculate(busy_snapshot)
